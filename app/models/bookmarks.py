import uuid
from sqlalchemy import Column, Integer, String, Text, Uuid, ForeignKey, func
from . import Base, TZDateTime, utcnow


class Bookmark(Base):
    __tablename__ = 'bookmarks'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    book_id = Column(String, nullable=False)
    book_name = Column(String, nullable=False)
    chapter = Column(Integer, nullable=False)
    verse = Column(Integer, nullable=False)
    verse_text = Column(Text, nullable=False)
    highlight_color = Column(String, nullable=True)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
