import uuid
from fastapi import APIRouter, Depends
from typing import List, Optional
from ..schemas.notes import NoteIn, NoteUpdateIn, NoteOut
from ..crud import create_note, list_notes, get_note, update_note, delete_note
from ..auth import get_current_user
from ..policies import Caller

router = APIRouter()


@router.post('', response_model=NoteOut, status_code=201)
async def add(payload: NoteIn, current_user: Caller = Depends(get_current_user)):
    return await create_note(current_user, payload)


@router.get('', response_model=List[NoteOut])
async def list_mine(book_id: Optional[str] = None, chapter: Optional[int] = None,
                    current_user: Caller = Depends(get_current_user)):
    return await list_notes(current_user, book_id=book_id, chapter=chapter)


@router.get('/{note_id}', response_model=NoteOut)
async def get_one(note_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    return await get_note(current_user, note_id)


@router.patch('/{note_id}', response_model=NoteOut)
async def edit(note_id: uuid.UUID, payload: NoteUpdateIn, current_user: Caller = Depends(get_current_user)):
    return await update_note(current_user, note_id, payload.model_dump(exclude_unset=True))


@router.delete('/{note_id}', status_code=204)
async def remove(note_id: uuid.UUID, current_user: Caller = Depends(get_current_user)):
    await delete_note(current_user, note_id)
