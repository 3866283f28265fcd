import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class BookmarkIn(BaseModel):
    book_id: str
    book_name: str
    chapter: int = Field(ge=1)
    verse: int = Field(ge=1)
    verse_text: str
    highlight_color: Optional[str] = None


class BookmarkOut(BookmarkIn):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime
