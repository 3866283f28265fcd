import os
import uuid
from datetime import datetime, timedelta, timezone
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from passlib.context import CryptContext
from .policies import Caller

# Prefer JWT_SECRET but support legacy JWT_SECRET_KEY for compatibility
SECRET = os.getenv('JWT_SECRET') or os.getenv('JWT_SECRET_KEY', 'devsecret')
ALGORITHM = os.getenv('JWT_ALGORITHM', 'HS256')
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', str(60 * 24 * 7)))

pwd_ctx = CryptContext(schemes=['pbkdf2_sha256'], deprecated='auto')
bearer = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_ctx.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_ctx.verify(password, hashed)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({'exp': expire})
    encoded = jwt.encode(to_encode, SECRET, algorithm=ALGORITHM)
    return encoded


def token_for(identity) -> str:
    return create_access_token({
        'sub': str(identity.id),
        'email': identity.email,
        'user_metadata': identity.raw_user_meta_data or {},
    })


def decode_token(token: str):
    try:
        payload = jwt.decode(token, SECRET, algorithms=[ALGORITHM])
        return payload
    except JWTError:
        return None


def caller_from_token(token: str):
    payload = decode_token(token)
    if not payload or 'sub' not in payload:
        return None
    try:
        identity_id = uuid.UUID(payload['sub'])
    except ValueError:
        return None
    return Caller(id=identity_id, email=payload.get('email'), metadata=payload.get('user_metadata') or {})


async def get_optional_user(credentials: HTTPAuthorizationCredentials = Depends(bearer)):
    """Caller for the request, or None for anonymous access to public rows."""
    if credentials is None:
        return None
    caller = caller_from_token(credentials.credentials)
    if caller is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, 'Invalid token', headers={'WWW-Authenticate': 'Bearer'})
    return caller


async def get_current_user(caller: Caller = Depends(get_optional_user)) -> Caller:
    if caller is None:
        raise HTTPException(status.HTTP_401_UNAUTHORIZED, 'Not authenticated', headers={'WWW-Authenticate': 'Bearer'})
    return caller
