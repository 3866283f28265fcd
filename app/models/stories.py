import uuid
from sqlalchemy import Column, Integer, String, Text, Boolean, Uuid, ForeignKey, CheckConstraint, func, true
from . import Base, TZDateTime, utcnow

STORY_TYPES = ('verse', 'quote', 'video', 'image', 'devotional')


class Story(Base):
    __tablename__ = 'stories'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    author_name = Column(String, nullable=False)
    type = Column(String, nullable=False)
    title = Column(String, nullable=True)
    content = Column(Text, nullable=False)
    media_url = Column(String, nullable=True)
    verse_reference = Column(String, nullable=True)
    # derived from story_likes, see app/triggers.py
    likes_count = Column(Integer, nullable=False, default=0, server_default='0')
    is_published = Column(Boolean, nullable=False, default=True, server_default=true(), index=True)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now(), index=True)
    updated_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    __table_args__ = (
        CheckConstraint("type IN ('verse', 'quote', 'video', 'image', 'devotional')", name='ck_stories_type'),
    )
