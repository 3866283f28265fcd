import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class NoteIn(BaseModel):
    book_id: str
    chapter: int = Field(ge=1)
    verse: int = Field(ge=1)
    content: str


class NoteUpdateIn(BaseModel):
    content: Optional[str] = None


class NoteOut(NoteIn):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
