import uuid
from sqlalchemy import Column, Integer, String, Boolean, JSON, Uuid, ForeignKey, UniqueConstraint, func
from . import Base, TZDateTime, utcnow

MEDIA_BUCKET = 'media'


class Bucket(Base):
    __tablename__ = 'storage_buckets'
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    public = Column(Boolean, nullable=False, default=False)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())


class MediaObject(Base):
    """Metadata row for a blob; the bytes themselves live in app.storage."""
    __tablename__ = 'media_objects'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    bucket_id = Column(String, ForeignKey('storage_buckets.id'), nullable=False, index=True)
    name = Column(String, nullable=False)
    owner_id = Column(Uuid, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    content_type = Column(String, nullable=True)
    size = Column(Integer, nullable=False, default=0)
    meta = Column('metadata', JSON, nullable=False, default=dict)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    __table_args__ = (
        UniqueConstraint('bucket_id', 'name', name='uix_bucket_object_name'),
    )
