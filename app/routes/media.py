"""
Public media bucket.

Anyone may read; only pastors and admins may upload, replace or delete.
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from typing import Optional
from ..schemas.media import MediaObjectOut
from ..crud import upload_media, replace_media, delete_media, read_media, media_url
from ..auth import get_current_user, get_optional_user
from ..policies import Caller

router = APIRouter()


def _out(obj) -> MediaObjectOut:
    return MediaObjectOut.model_validate(obj).model_copy(update={'public_url': media_url(obj)})


@router.post('', response_model=MediaObjectOut, status_code=201)
async def upload(
    file: UploadFile = File(...),
    name: Optional[str] = Form(None),
    current_user: Caller = Depends(get_current_user),
):
    data = await file.read()
    obj = await upload_media(current_user, name or file.filename, data, file.content_type)
    return _out(obj)


@router.get('/{name:path}')
async def download(name: str, caller: Optional[Caller] = Depends(get_optional_user)):
    obj, data = await read_media(caller, name)
    return Response(content=data, media_type=obj.content_type or 'application/octet-stream')


@router.put('/{name:path}', response_model=MediaObjectOut)
async def replace(name: str, file: UploadFile = File(...), current_user: Caller = Depends(get_current_user)):
    data = await file.read()
    obj = await replace_media(current_user, name, data, file.content_type)
    return _out(obj)


@router.delete('/{name:path}', status_code=204)
async def remove(name: str, current_user: Caller = Depends(get_current_user)):
    await delete_media(current_user, name)
