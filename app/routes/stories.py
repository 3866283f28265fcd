import uuid
from fastapi import APIRouter, Depends, Query
from typing import List, Optional
from ..schemas.stories import StoryCreateIn, StoryUpdateIn, StoryOut, StoryType, LikeOut
from ..crud import (
    create_story,
    list_stories,
    get_story,
    update_story,
    delete_story,
    like_story,
    unlike_story,
    list_story_likes,
)
from ..auth import get_current_user, get_optional_user
from ..policies import Caller

router = APIRouter()


@router.post('', response_model=StoryOut, status_code=201)
async def create(payload: StoryCreateIn, current_user: Caller = Depends(get_current_user)):
    return await create_story(current_user, payload)


@router.get('', response_model=List[StoryOut])
async def feed(
    type: Optional[StoryType] = None,
    mine: bool = False,
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    caller: Optional[Caller] = Depends(get_optional_user),
):
    return await list_stories(caller, story_type=type, mine=mine, limit=limit, offset=offset)


@router.get('/{story_id}', response_model=StoryOut)
async def get_one(story_id: uuid.UUID, caller: Optional[Caller] = Depends(get_optional_user)):
    return await get_story(caller, story_id)


@router.patch('/{story_id}', response_model=StoryOut)
async def edit(story_id: uuid.UUID, payload: StoryUpdateIn, current_user: Caller = Depends(get_current_user)):
    return await update_story(current_user, story_id, payload.model_dump(exclude_unset=True))


@router.delete('/{story_id}', status_code=204)
async def remove(story_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    await delete_story(current_user, story_id)


# likes
@router.post('/{story_id}/like', response_model=LikeOut, status_code=201)
async def like(story_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    return await like_story(current_user, story_id)


@router.delete('/{story_id}/like', status_code=204)
async def unlike(story_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    await unlike_story(current_user, story_id)


@router.get('/{story_id}/likes', response_model=List[LikeOut])
async def likes(story_id: uuid.UUID, caller: Optional[Caller] = Depends(get_optional_user)):
    return await list_story_likes(caller, story_id)
