import uuid
from sqlalchemy import Column, String, JSON, Uuid, func
from . import Base, TZDateTime, utcnow


class Identity(Base):
    """Authentication identity; owns every other row through ON DELETE CASCADE."""
    __tablename__ = 'users'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    raw_user_meta_data = Column(JSON, nullable=False, default=dict)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
