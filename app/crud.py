import logging
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import flag_modified
from .models import (
    Identity, Profile, Bookmark, Story, DailyManna, StoryLike, Note, Bucket, MediaObject, MEDIA_BUCKET,
)
from .rls import open_session, service_session, authorize, deny
from .policies import Action
from .errors import ConstraintViolation, NotFound
from .auth import hash_password, verify_password
from .provisioning import provision_profile
from .triggers import refresh_likes_count
from .storage import get_media_storage, describe_blob, normalize_object_name
from .metrics import MEDIA_BYTES_UPLOADED

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ('full_name', 'avatar_url')
STORY_FIELDS = ('author_name', 'type', 'title', 'content', 'media_url', 'verse_reference', 'is_published')
MANNA_FIELDS = ('date', 'title', 'verse_reference', 'verse_text', 'reflection', 'prayer')
NOTE_FIELDS = ('book_id', 'chapter', 'verse', 'content')


def _constraint_message(e: IntegrityError) -> str:
    orig = getattr(e, 'orig', None) or e
    return str(orig).splitlines()[0]


async def _flush(session):
    try:
        await session.flush()
    except IntegrityError as e:
        await session.rollback()
        raise ConstraintViolation(_constraint_message(e)) from e


async def _commit(session):
    try:
        await session.commit()
    except IntegrityError as e:
        await session.rollback()
        raise ConstraintViolation(_constraint_message(e)) from e


async def _visible(session, model, row_id):
    """Row by id as the session's caller sees it; invisible and missing rows look the same."""
    q = await session.execute(select(model).where(model.id == row_id))
    row = q.scalars().first()
    if not row:
        raise NotFound(f'{model.__tablename__} {row_id} not found')
    return row


async def _update(session, row, changes: dict, fields):
    """Apply whitelisted changes and check the update policy even when nothing changed."""
    for key, value in changes.items():
        if key in fields:
            setattr(row, key, value)
    await session.run_sync(authorize, row, Action.UPDATE)
    return row


def _owner_id(caller):
    return caller.id if caller else None


# identities
async def create_identity(email: str, password: str, metadata: dict | None = None):
    """Sign-up: identity and its profile are committed together or not at all."""
    async with service_session() as session:
        identity = Identity(
            email=email.strip(),
            hashed_password=hash_password(password),
            raw_user_meta_data=dict(metadata or {}),
        )
        session.add(identity)
        await _flush(session)
        await provision_profile(session, identity)
        await _commit(session)
        logger.info({'msg': 'identity_created', 'identity': str(identity.id)})
        return identity


async def authenticate(email: str, password: str):
    async with service_session() as session:
        q = await session.execute(select(Identity).where(Identity.email == email.strip()))
        identity = q.scalars().first()
        if not identity or not verify_password(password, identity.hashed_password):
            return None
        return identity


async def delete_identity(identity_id):
    """Hard delete; the database cascades to every row the identity owns."""
    async with service_session() as session:
        identity = await _visible(session, Identity, identity_id)
        q = await session.execute(select(StoryLike.story_id).where(StoryLike.user_id == identity_id))
        liked = set(q.scalars().all())
        await session.delete(identity)
        await _flush(session)
        conn = await session.connection()
        await conn.run_sync(refresh_likes_count, liked)
        await _commit(session)
        logger.info({'msg': 'identity_deleted', 'identity': str(identity_id)})


# profiles
async def get_profile(caller, profile_id):
    async with open_session(caller) as session:
        return await _visible(session, Profile, profile_id)


async def update_profile(caller, profile_id, changes: dict):
    async with open_session(caller) as session:
        profile = await _visible(session, Profile, profile_id)
        await _update(session, profile, changes, PROFILE_FIELDS)
        await _commit(session)
        return profile


async def grant_role(identity_id, role: str):
    """Privileged role assignment; the role check constraint still applies."""
    async with service_session() as session:
        profile = await _visible(session, Profile, identity_id)
        profile.role = role
        await _commit(session)
        logger.info({'msg': 'role_granted', 'identity': str(identity_id), 'role': role})
        return profile


async def change_role(actor, identity_id, role: str):
    """Role change requested by a user; only admins may do it.

    The actor's role is read and locked in the same transaction that writes
    the new role, so a concurrent demotion of the actor cannot slip between.
    """
    async with service_session() as session:
        res = await session.execute(
            select(Profile.role).where(Profile.id == actor.id).with_for_update()
        )
        if res.scalar_one_or_none() != 'admin':
            deny(Profile, Action.UPDATE, actor)
        profile = await _visible(session, Profile, identity_id)
        profile.role = role
        await _commit(session)
        logger.info({'msg': 'role_changed', 'identity': str(identity_id), 'role': role, 'actor': str(actor.id)})
        return profile


# bookmarks
async def create_bookmark(caller, payload):
    async with open_session(caller) as session:
        bookmark = Bookmark(user_id=_owner_id(caller), **payload.model_dump())
        session.add(bookmark)
        await _commit(session)
        return bookmark


async def list_bookmarks(caller, book_id: str | None = None, chapter: int | None = None):
    async with open_session(caller) as session:
        q = select(Bookmark)
        if book_id is not None:
            q = q.where(Bookmark.book_id == book_id)
        if chapter is not None:
            q = q.where(Bookmark.chapter == chapter)
        res = await session.execute(q.order_by(Bookmark.created_at.desc()))
        return res.scalars().all()


async def get_bookmark(caller, bookmark_id):
    async with open_session(caller) as session:
        return await _visible(session, Bookmark, bookmark_id)


async def delete_bookmark(caller, bookmark_id):
    async with open_session(caller) as session:
        bookmark = await _visible(session, Bookmark, bookmark_id)
        await session.delete(bookmark)
        await _commit(session)


# stories
async def create_story(caller, payload):
    async with open_session(caller) as session:
        data = payload.model_dump()
        if not data.get('author_name') and caller is not None:
            q = await session.execute(select(Profile).where(Profile.id == caller.id))
            profile = q.scalars().first()
            data['author_name'] = (profile and (profile.full_name or profile.email)) or caller.email
        story = Story(author_id=_owner_id(caller), **data)
        session.add(story)
        await _commit(session)
        return story


async def list_stories(caller, story_type: str | None = None, mine: bool = False, limit: int = 50, offset: int = 0):
    async with open_session(caller) as session:
        q = select(Story)
        if story_type:
            q = q.where(Story.type == story_type)
        if mine:
            q = q.where(Story.author_id == _owner_id(caller))
        res = await session.execute(q.order_by(Story.created_at.desc()).limit(limit).offset(offset))
        return res.scalars().all()


async def get_story(caller, story_id):
    async with open_session(caller) as session:
        return await _visible(session, Story, story_id)


async def update_story(caller, story_id, changes: dict):
    async with open_session(caller) as session:
        story = await _visible(session, Story, story_id)
        await _update(session, story, changes, STORY_FIELDS)
        await _commit(session)
        return story


async def delete_story(caller, story_id):
    async with open_session(caller) as session:
        story = await _visible(session, Story, story_id)
        await session.delete(story)
        await _commit(session)


# daily manna
async def create_daily_manna(caller, payload):
    async with open_session(caller) as session:
        entry = DailyManna(author_id=_owner_id(caller), **payload.model_dump())
        session.add(entry)
        await _commit(session)
        return entry


async def list_daily_manna(caller, limit: int = 30, offset: int = 0):
    async with open_session(caller) as session:
        res = await session.execute(
            select(DailyManna).order_by(DailyManna.date.desc()).limit(limit).offset(offset)
        )
        return res.scalars().all()


async def get_daily_manna_for_date(caller, day):
    async with open_session(caller) as session:
        res = await session.execute(select(DailyManna).where(DailyManna.date == day))
        entry = res.scalars().first()
        if not entry:
            raise NotFound(f'No daily manna for {day.isoformat()}')
        return entry


async def update_daily_manna(caller, entry_id, changes: dict):
    async with open_session(caller) as session:
        entry = await _visible(session, DailyManna, entry_id)
        await _update(session, entry, changes, MANNA_FIELDS)
        await _commit(session)
        return entry


async def delete_daily_manna(caller, entry_id):
    async with open_session(caller) as session:
        entry = await _visible(session, DailyManna, entry_id)
        await session.delete(entry)
        await _commit(session)


# likes
async def like_story(caller, story_id):
    """A second like of the same story by the same user is a ConstraintViolation."""
    async with open_session(caller) as session:
        story = await _visible(session, Story, story_id)
        like = StoryLike(story_id=story.id, user_id=_owner_id(caller))
        session.add(like)
        await _commit(session)
        return like


async def unlike_story(caller, story_id):
    async with open_session(caller) as session:
        res = await session.execute(
            select(StoryLike).where(StoryLike.story_id == story_id, StoryLike.user_id == _owner_id(caller))
        )
        like = res.scalars().first()
        if not like:
            raise NotFound('Like not found')
        await session.delete(like)
        await _commit(session)


async def list_story_likes(caller, story_id):
    async with open_session(caller) as session:
        await _visible(session, Story, story_id)
        res = await session.execute(
            select(StoryLike).where(StoryLike.story_id == story_id).order_by(StoryLike.created_at.asc())
        )
        return res.scalars().all()


async def has_liked(caller, story_id) -> bool:
    if caller is None:
        return False
    async with open_session(caller) as session:
        res = await session.execute(
            select(StoryLike.id).where(StoryLike.story_id == story_id, StoryLike.user_id == caller.id)
        )
        return res.first() is not None


# notes
async def create_note(caller, payload):
    async with open_session(caller) as session:
        note = Note(user_id=_owner_id(caller), **payload.model_dump())
        session.add(note)
        await _commit(session)
        return note


async def list_notes(caller, book_id: str | None = None, chapter: int | None = None):
    async with open_session(caller) as session:
        q = select(Note)
        if book_id is not None:
            q = q.where(Note.book_id == book_id)
        if chapter is not None:
            q = q.where(Note.chapter == chapter)
        res = await session.execute(q.order_by(Note.chapter.asc(), Note.verse.asc(), Note.created_at.asc()))
        return res.scalars().all()


async def get_note(caller, note_id):
    async with open_session(caller) as session:
        return await _visible(session, Note, note_id)


async def update_note(caller, note_id, changes: dict):
    async with open_session(caller) as session:
        note = await _visible(session, Note, note_id)
        await _update(session, note, changes, NOTE_FIELDS)
        await _commit(session)
        return note


async def delete_note(caller, note_id):
    async with open_session(caller) as session:
        note = await _visible(session, Note, note_id)
        await session.delete(note)
        await _commit(session)


# media bucket
async def ensure_media_bucket():
    async with service_session() as session:
        res = await session.execute(select(Bucket).where(Bucket.id == MEDIA_BUCKET))
        if res.scalars().first() is None:
            session.add(Bucket(id=MEDIA_BUCKET, name=MEDIA_BUCKET, public=True))
            await _commit(session)
            logger.info({'msg': 'bucket_created', 'bucket': MEDIA_BUCKET})


async def _visible_media(session, name: str):
    res = await session.execute(
        select(MediaObject).where(MediaObject.bucket_id == MEDIA_BUCKET, MediaObject.name == name)
    )
    obj = res.scalars().first()
    if not obj:
        raise NotFound(f'Object {name} not found')
    return obj


async def upload_media(caller, name: str, data: bytes, content_type: str | None = None):
    """Row first (policy + unique name), then bytes; a failed blob write rolls the row back."""
    name = normalize_object_name(name)
    meta = describe_blob(data, content_type)
    storage = get_media_storage()
    async with open_session(caller) as session:
        obj = MediaObject(bucket_id=MEDIA_BUCKET, name=name, owner_id=_owner_id(caller),
                          content_type=meta['mimetype'], size=len(data), meta=meta)
        session.add(obj)
        await _flush(session)
        await storage.put(MEDIA_BUCKET, name, data, meta['mimetype'])
        try:
            await _commit(session)
        except Exception:
            await storage.delete(MEDIA_BUCKET, name)
            raise
    MEDIA_BYTES_UPLOADED.inc(len(data))
    return obj


async def replace_media(caller, name: str, data: bytes, content_type: str | None = None):
    """Authorized row update, then bytes; a failed commit puts the previous bytes back."""
    name = normalize_object_name(name)
    meta = describe_blob(data, content_type)
    storage = get_media_storage()
    async with open_session(caller) as session:
        obj = await _visible_media(session, name)
        previous_type = obj.content_type
        obj.content_type = meta['mimetype']
        obj.size = len(data)
        obj.meta = meta
        # new bytes are a new version even when size and type match
        flag_modified(obj, 'meta')
        await session.run_sync(authorize, obj, Action.UPDATE)
        await _flush(session)
        try:
            previous = await storage.get(MEDIA_BUCKET, name)
        except NotFound:
            previous = None
        await storage.put(MEDIA_BUCKET, name, data, meta['mimetype'])
        try:
            await _commit(session)
        except Exception:
            if previous is None:
                await storage.delete(MEDIA_BUCKET, name)
            else:
                await storage.put(MEDIA_BUCKET, name, previous, previous_type)
            raise
    MEDIA_BYTES_UPLOADED.inc(len(data))
    return obj


async def delete_media(caller, name: str):
    name = normalize_object_name(name)
    async with open_session(caller) as session:
        obj = await _visible_media(session, name)
        await session.delete(obj)
        await _commit(session)
    if not await get_media_storage().delete(MEDIA_BUCKET, name):
        logger.warning({'msg': 'media_blob_missing', 'name': name})


async def get_media(caller, name: str):
    name = normalize_object_name(name)
    async with open_session(caller) as session:
        return await _visible_media(session, name)


async def read_media(caller, name: str):
    obj = await get_media(caller, name)
    data = await get_media_storage().get(MEDIA_BUCKET, obj.name)
    return obj, data


def media_url(obj) -> str:
    return get_media_storage().public_url(obj.bucket_id, obj.name)
