import uuid
from datetime import date
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from ..schemas.manna import DailyMannaIn, DailyMannaUpdateIn, DailyMannaOut
from ..crud import (
    create_daily_manna,
    list_daily_manna,
    get_daily_manna_for_date,
    update_daily_manna,
    delete_daily_manna,
)
from ..auth import get_current_user, get_optional_user
from ..models import utcnow
from ..policies import Caller

router = APIRouter()


@router.post('', response_model=DailyMannaOut, status_code=201)
async def publish(payload: DailyMannaIn, current_user: Caller = Depends(get_current_user)):
    """Pastors and admins only; one entry per date."""
    return await create_daily_manna(current_user, payload)


@router.get('', response_model=List[DailyMannaOut])
async def archive(
    limit: int = Query(30, ge=1, le=366),
    offset: int = Query(0, ge=0),
    caller: Optional[Caller] = Depends(get_optional_user),
):
    return await list_daily_manna(caller, limit=limit, offset=offset)


@router.get('/today', response_model=DailyMannaOut)
async def today(caller: Optional[Caller] = Depends(get_optional_user)):
    return await get_daily_manna_for_date(caller, utcnow().date())


@router.get('/date/{day}', response_model=DailyMannaOut)
async def for_date(day: date, caller: Optional[Caller] = Depends(get_optional_user)):
    return await get_daily_manna_for_date(caller, day)


@router.patch('/{entry_id}', response_model=DailyMannaOut)
async def edit(entry_id: uuid.UUID, payload: DailyMannaUpdateIn, current_user: Caller = Depends(get_current_user)):
    return await update_daily_manna(current_user, entry_id, payload.model_dump(exclude_unset=True))


@router.delete('/{entry_id}', status_code=204)
async def remove(entry_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    await delete_daily_manna(current_user, entry_id)
