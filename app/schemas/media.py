import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class MediaObjectOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    bucket_id: str
    name: str
    owner_id: Optional[uuid.UUID] = None
    content_type: Optional[str] = None
    size: int
    metadata: dict = Field(default_factory=dict, validation_alias='meta')
    public_url: Optional[str] = None
    created_at: datetime
    updated_at: datetime
