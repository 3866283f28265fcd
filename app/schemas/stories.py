import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict
from typing import Literal, Optional

StoryType = Literal['verse', 'quote', 'video', 'image', 'devotional']


class StoryCreateIn(BaseModel):
    type: StoryType
    content: str
    title: Optional[str] = None
    author_name: Optional[str] = None
    media_url: Optional[str] = None
    verse_reference: Optional[str] = None
    is_published: bool = True


class StoryUpdateIn(BaseModel):
    type: Optional[StoryType] = None
    content: Optional[str] = None
    title: Optional[str] = None
    author_name: Optional[str] = None
    media_url: Optional[str] = None
    verse_reference: Optional[str] = None
    is_published: Optional[bool] = None


class StoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    author_id: uuid.UUID
    author_name: str
    type: StoryType
    title: Optional[str] = None
    content: str
    media_url: Optional[str] = None
    verse_reference: Optional[str] = None
    likes_count: int
    is_published: bool
    created_at: datetime
    updated_at: datetime


class LikeOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    story_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
