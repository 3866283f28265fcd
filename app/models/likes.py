import uuid
from sqlalchemy import Column, Uuid, ForeignKey, UniqueConstraint, func
from . import Base, TZDateTime, utcnow


class StoryLike(Base):
    __tablename__ = 'story_likes'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    story_id = Column(Uuid, ForeignKey('stories.id', ondelete='CASCADE'), index=True, nullable=False)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    __table_args__ = (
        UniqueConstraint('story_id', 'user_id', name='uix_story_user_like'),
    )
