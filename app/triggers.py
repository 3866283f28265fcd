"""
Flush-time maintenance: server-assigned ``updated_at`` and the derived
``stories.likes_count``.
"""

from datetime import timedelta, timezone

from sqlalchemy import event, func, inspect, select, update
from sqlalchemy.orm import object_session

from .models import MediaObject, Note, Profile, Story, StoryLike, utcnow
from .rls import PolicySession

TIMESTAMPED = (Profile, Story, Note, MediaObject)
_TICK = timedelta(microseconds=1)
_STALE_COUNTS = 'stale_like_counts'


def next_updated_at(previous):
    """Current time, nudged forward when the clock has not moved past ``previous``."""
    now = utcnow()
    if previous is not None:
        if previous.tzinfo is None:
            previous = previous.replace(tzinfo=timezone.utc)
        if now <= previous:
            now = previous + _TICK
    return now


def _stamp_insert(mapper, connection, target):
    now = utcnow()
    if target.created_at is None:
        target.created_at = now
    target.updated_at = now


def _stamp_update(mapper, connection, target):
    session = object_session(target)
    if session is not None and not session.is_modified(target, include_collections=False):
        return
    hist = inspect(target).attrs.updated_at.history
    # a caller-supplied value shows up in hist.added and is discarded
    if hist.deleted:
        previous = hist.deleted[0]
    elif hist.unchanged:
        previous = hist.unchanged[0]
    else:
        previous = None
    target.updated_at = next_updated_at(previous)


for _model in TIMESTAMPED:
    event.listen(_model, 'before_insert', _stamp_insert)
    event.listen(_model, 'before_update', _stamp_update)


def refresh_likes_count(connection, story_ids):
    """Recompute likes_count from story_likes for the given stories."""
    if not story_ids:
        return
    stories = Story.__table__
    likes = StoryLike.__table__
    counted = (
        select(func.count(likes.c.id))
        .where(likes.c.story_id == stories.c.id)
        .scalar_subquery()
    )
    connection.execute(
        update(stories).where(stories.c.id.in_(list(story_ids))).values(likes_count=counted)
    )


@event.listens_for(PolicySession, 'after_flush')
def _count_likes(session, flush_context):
    # new/deleted still hold the pre-flush state here
    story_ids = {
        obj.story_id
        for obj in list(session.new) + list(session.deleted)
        if isinstance(obj, StoryLike)
    }
    if story_ids:
        refresh_likes_count(session.connection(), story_ids)
        session.info.setdefault(_STALE_COUNTS, set()).update(story_ids)


@event.listens_for(PolicySession, 'after_flush_postexec')
def _expire_like_counts(session, flush_context):
    story_ids = session.info.pop(_STALE_COUNTS, None)
    if not story_ids:
        return
    for obj in list(session.identity_map.values()):
        if isinstance(obj, Story) and obj.id in story_ids:
            session.expire(obj, ['likes_count'])
