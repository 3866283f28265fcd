from fastapi import APIRouter, Depends, HTTPException, Form, status
from ..schemas.users import SignupIn, TokenOut, ProfileOut
from ..crud import create_identity, authenticate, delete_identity, get_profile
from ..auth import token_for, get_current_user
from ..policies import Caller

router = APIRouter()


@router.post('/signup', response_model=TokenOut, status_code=201)
async def signup(payload: SignupIn):
    metadata = {'full_name': payload.full_name} if payload.full_name else {}
    identity = await create_identity(payload.email, payload.password, metadata)
    return TokenOut(access_token=token_for(identity), user_id=identity.id)


@router.post('/login', response_model=TokenOut)
async def login(email: str = Form(...), password: str = Form(...)):
    identity = await authenticate(email, password)
    if not identity:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, 'Invalid credentials')
    return TokenOut(access_token=token_for(identity), user_id=identity.id)


@router.get('/me', response_model=ProfileOut)
async def me(current_user: Caller = Depends(get_current_user)):
    return await get_profile(current_user, current_user.id)


@router.delete('/me', status_code=204)
async def delete_account(current_user: Caller = Depends(get_current_user)):
    """Removes the account and everything it owns."""
    await delete_identity(current_user.id)
