import uuid
from fastapi import APIRouter, Depends
from typing import List, Optional
from ..schemas.bookmarks import BookmarkIn, BookmarkOut
from ..crud import create_bookmark, list_bookmarks, get_bookmark, delete_bookmark
from ..auth import get_current_user
from ..policies import Caller

router = APIRouter()


@router.post('', response_model=BookmarkOut, status_code=201)
async def add(payload: BookmarkIn, current_user: Caller = Depends(get_current_user)):
    return await create_bookmark(current_user, payload)


@router.get('', response_model=List[BookmarkOut])
async def list_mine(book_id: Optional[str] = None, chapter: Optional[int] = None,
                    current_user: Caller = Depends(get_current_user)):
    return await list_bookmarks(current_user, book_id=book_id, chapter=chapter)


@router.get('/{bookmark_id}', response_model=BookmarkOut)
async def get_one(bookmark_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    return await get_bookmark(current_user, bookmark_id)


@router.delete('/{bookmark_id}', status_code=204)
async def remove(bookmark_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    await delete_bookmark(current_user, bookmark_id)
