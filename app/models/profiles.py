from sqlalchemy import Column, String, Uuid, ForeignKey, CheckConstraint, func
from . import Base, TZDateTime, utcnow

ROLES = ('member', 'pastor', 'admin')
ELEVATED_ROLES = ('pastor', 'admin')


class Profile(Base):
    __tablename__ = 'profiles'
    id = Column(Uuid, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    email = Column(String, nullable=True)
    full_name = Column(String, nullable=True)
    avatar_url = Column(String, nullable=True)
    role = Column(String, nullable=False, default='member', server_default='member')
    created_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    updated_at = Column(TZDateTime, nullable=False, default=utcnow, server_default=func.now())
    __table_args__ = (
        CheckConstraint("role IN ('member', 'pastor', 'admin')", name='ck_profiles_role'),
    )
