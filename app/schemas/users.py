import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import Literal, Optional

Role = Literal['member', 'pastor', 'admin']


class SignupIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: Optional[str] = None


class TokenOut(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user_id: uuid.UUID


class ProfileOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    email: Optional[str] = None
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role
    created_at: datetime
    updated_at: datetime


class ProfileUpdateIn(BaseModel):
    full_name: Optional[str] = Field(default=None, max_length=100)
    avatar_url: Optional[str] = None


class RoleIn(BaseModel):
    role: Role
