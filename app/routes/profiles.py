import uuid
from fastapi import APIRouter, Depends
from ..schemas.users import ProfileOut, ProfileUpdateIn, RoleIn
from ..crud import get_profile, update_profile, change_role
from ..auth import get_current_user, get_optional_user
from ..policies import Caller

router = APIRouter()


@router.get('/me', response_model=ProfileOut)
async def my_profile(current_user: Caller = Depends(get_current_user)):
    return await get_profile(current_user, current_user.id)


@router.patch('/me', response_model=ProfileOut)
async def edit_my_profile(payload: ProfileUpdateIn, current_user: Caller = Depends(get_current_user)):
    return await update_profile(current_user, current_user.id, payload.model_dump(exclude_unset=True))


@router.get('/{profile_id}', response_model=ProfileOut)
async def view_profile(profile_id: uuid.UUID, caller: Caller = Depends(get_optional_user)):
    return await get_profile(caller, profile_id)


@router.put('/{profile_id}/role', response_model=ProfileOut)
async def set_role(profile_id: uuid.UUID, payload: RoleIn, current_user: Caller = Depends(get_current_user)):
    """Admins only."""
    return await change_role(current_user, profile_id, payload.role)
