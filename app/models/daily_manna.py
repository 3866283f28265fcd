import uuid
from sqlalchemy import Column, Date, String, Text, Uuid, ForeignKey, func
from . import Base, TZDateTime, utcnow


class DailyManna(Base):
    __tablename__ = 'daily_manna'
    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    author_id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    date = Column(Date, unique=True, nullable=False)  # one entry per calendar day
    title = Column(String, nullable=False)
    verse_reference = Column(String, nullable=False)
    verse_text = Column(Text, nullable=False)
    reflection = Column(Text, nullable=False)
    prayer = Column(Text, nullable=True)
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
