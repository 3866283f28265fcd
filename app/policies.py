"""
Row-level policies.

Each entity has one policy object. Write predicates are plain functions of
(caller, row, role) evaluated per call; reads are expressed as SQL criteria so
the database filters rows the caller may not see. The caller's role is always
passed in explicitly, it is never remembered between evaluations.
"""

import enum
import uuid
from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import and_, exists, false, or_, true

from .models import (
    Bookmark, Bucket, DailyManna, Identity, MediaObject, Note, Profile, Story, StoryLike,
    ELEVATED_ROLES, MEDIA_BUCKET,
)


class Action(str, enum.Enum):
    READ = 'read'
    INSERT = 'insert'
    UPDATE = 'update'
    DELETE = 'delete'


@dataclass(frozen=True)
class Caller:
    """Authenticated identity carried by every request."""
    id: uuid.UUID
    email: Optional[str] = None
    metadata: dict = field(default_factory=dict, compare=False, hash=False)


def is_elevated(role: Optional[str]) -> bool:
    return role in ELEVATED_ROLES


def owns(caller: Optional[Caller], owner_id) -> bool:
    return caller is not None and owner_id is not None and caller.id == owner_id


def caller_is_elevated(caller: Optional[Caller]):
    """SQL form of is_elevated() for the caller, evaluated by the database at statement time."""
    if caller is None:
        return false()
    return exists().where(Profile.id == caller.id, Profile.role.in_(ELEVATED_ROLES))


class RowPolicy:
    """Deny-by-default base; subclasses open up the operations they allow."""
    model = None

    def read_criteria(self, caller: Optional[Caller]):
        return false()

    def delete_criteria(self, caller: Optional[Caller]):
        return false()

    def can_insert(self, caller, row, role) -> bool:
        return False

    def can_update(self, caller, old, new, role) -> bool:
        return False

    def can_delete(self, caller, row, role) -> bool:
        return False

    def allows(self, action: Action, caller, row, role, new=None) -> bool:
        if caller is None:
            return False
        if action is Action.INSERT:
            return self.can_insert(caller, row, role)
        if action is Action.UPDATE:
            return self.can_update(caller, row, new if new is not None else row, role)
        if action is Action.DELETE:
            return self.can_delete(caller, row, role)
        return False


class IdentityPolicy(RowPolicy):
    # writes happen only in service sessions
    model = Identity

    def read_criteria(self, caller):
        return Identity.id == caller.id if caller else false()


class ProfilePolicy(RowPolicy):
    model = Profile

    def read_criteria(self, caller):
        return true()

    def can_insert(self, caller, row, role):
        # self-inserted profiles start as members; roles change through change_role()
        return owns(caller, row.id) and row.role in (None, 'member')

    def can_update(self, caller, old, new, role):
        return owns(caller, old.id) and owns(caller, new.id) and new.role == old.role


class BookmarkPolicy(RowPolicy):
    model = Bookmark

    def read_criteria(self, caller):
        return Bookmark.user_id == caller.id if caller else false()

    delete_criteria = read_criteria

    def can_insert(self, caller, row, role):
        return owns(caller, row.user_id)

    def can_delete(self, caller, row, role):
        return owns(caller, row.user_id)


class AuthoredContentPolicy(RowPolicy):
    """Pastors and admins publish; authors keep update/delete rights on what they wrote."""

    def delete_criteria(self, caller):
        return self.model.author_id == caller.id if caller else false()

    def can_insert(self, caller, row, role):
        return owns(caller, row.author_id) and is_elevated(role)

    def can_update(self, caller, old, new, role):
        return owns(caller, old.author_id) and owns(caller, new.author_id)

    def can_delete(self, caller, row, role):
        return owns(caller, row.author_id)


class StoryPolicy(AuthoredContentPolicy):
    model = Story

    def read_criteria(self, caller):
        if caller is None:
            return Story.is_published.is_(True)
        return or_(Story.is_published.is_(True), Story.author_id == caller.id)


class DailyMannaPolicy(AuthoredContentPolicy):
    model = DailyManna

    def read_criteria(self, caller):
        return true()


class StoryLikePolicy(RowPolicy):
    model = StoryLike

    def read_criteria(self, caller):
        return true()

    def delete_criteria(self, caller):
        return StoryLike.user_id == caller.id if caller else false()

    def can_insert(self, caller, row, role):
        return owns(caller, row.user_id)

    def can_delete(self, caller, row, role):
        return owns(caller, row.user_id)


class NotePolicy(RowPolicy):
    model = Note

    def read_criteria(self, caller):
        return Note.user_id == caller.id if caller else false()

    delete_criteria = read_criteria

    def can_insert(self, caller, row, role):
        return owns(caller, row.user_id)

    def can_update(self, caller, old, new, role):
        return owns(caller, old.user_id) and owns(caller, new.user_id)

    def can_delete(self, caller, row, role):
        return owns(caller, row.user_id)


class MediaObjectPolicy(RowPolicy):
    model = MediaObject

    def read_criteria(self, caller):
        return MediaObject.bucket_id == MEDIA_BUCKET

    def delete_criteria(self, caller):
        return and_(MediaObject.bucket_id == MEDIA_BUCKET, caller_is_elevated(caller))

    def can_insert(self, caller, row, role):
        return row.bucket_id == MEDIA_BUCKET and is_elevated(role)

    def can_update(self, caller, old, new, role):
        return old.bucket_id == MEDIA_BUCKET and new.bucket_id == MEDIA_BUCKET and is_elevated(role)

    def can_delete(self, caller, row, role):
        return row.bucket_id == MEDIA_BUCKET and is_elevated(role)


class BucketPolicy(RowPolicy):
    model = Bucket

    def read_criteria(self, caller):
        return true()


POLICIES = {
    policy.model: policy
    for policy in (
        IdentityPolicy(), ProfilePolicy(), BookmarkPolicy(), StoryPolicy(), DailyMannaPolicy(),
        StoryLikePolicy(), NotePolicy(), MediaObjectPolicy(), BucketPolicy(),
    )
}


def policy_for(entity) -> RowPolicy:
    """Policy for a mapped class or instance; unknown entities get deny-all."""
    cls = entity if isinstance(entity, type) else type(entity)
    return POLICIES.get(cls) or RowPolicy()
