import uuid
import datetime as dt
from pydantic import BaseModel, ConfigDict
from typing import Optional


class DailyMannaIn(BaseModel):
    date: dt.date
    title: str
    verse_reference: str
    verse_text: str
    reflection: str
    prayer: Optional[str] = None


class DailyMannaUpdateIn(BaseModel):
    date: Optional[dt.date] = None
    title: Optional[str] = None
    verse_reference: Optional[str] = None
    verse_text: Optional[str] = None
    reflection: Optional[str] = None
    prayer: Optional[str] = None


class DailyMannaOut(DailyMannaIn):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    author_id: uuid.UUID
    created_at: dt.datetime
