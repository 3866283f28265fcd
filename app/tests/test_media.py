import os
import pytest
from app import crud
from app.errors import AuthorizationDenied, ConstraintViolation, NotFound
from app.storage import describe_blob, get_media_storage, normalize_object_name


def test_object_names_must_be_relative():
    assert normalize_object_name('stories/./2026/cover.png') == 'stories/2026/cover.png'
    for bad in ('/etc/passwd', '../secret', 'a/../../b', '', '   '):
        with pytest.raises(ConstraintViolation):
            normalize_object_name(bad)


def test_describe_blob_reads_image_dimensions(png_bytes):
    meta = describe_blob(png_bytes, 'image/png')
    assert meta == {'size': len(png_bytes), 'mimetype': 'image/png', 'width': 4, 'height': 3}


def test_describe_blob_rejects_broken_images():
    with pytest.raises(ConstraintViolation):
        describe_blob(b'not an image', 'image/jpeg')
    assert describe_blob(b'<svg/>', 'image/svg+xml')['size'] == 6
    assert describe_blob(b'abc')['mimetype'] == 'application/octet-stream'


@pytest.mark.asyncio
async def test_pastor_uploads_and_anyone_reads(pastor, png_bytes):
    obj = await crud.upload_media(pastor, 'stories/sunrise.png', png_bytes, 'image/png')
    assert obj.owner_id == pastor.id
    assert obj.meta['width'] == 4
    assert crud.media_url(obj).endswith('/media/stories/sunrise.png')

    found, data = await crud.read_media(None, 'stories/sunrise.png')
    assert found.id == obj.id
    assert data == png_bytes


@pytest.mark.asyncio
async def test_member_upload_is_rejected_before_bytes_are_stored(member, png_bytes):
    with pytest.raises(AuthorizationDenied):
        await crud.upload_media(member, 'sneaky.png', png_bytes, 'image/png')
    assert not os.path.exists(get_media_storage()._path('media', 'sneaky.png'))
    with pytest.raises(NotFound):
        await crud.get_media(None, 'sneaky.png')


@pytest.mark.asyncio
async def test_duplicate_name_keeps_original_bytes(pastor, admin, png_bytes):
    await crud.upload_media(pastor, 'cover.png', png_bytes, 'image/png')
    with pytest.raises(ConstraintViolation):
        await crud.upload_media(admin, 'cover.png', b'other', 'text/plain')
    _, data = await crud.read_media(None, 'cover.png')
    assert data == png_bytes


@pytest.mark.asyncio
async def test_replace_and_delete(pastor, admin, member, png_bytes):
    await crud.upload_media(pastor, 'notes.txt', b'v1', 'text/plain')
    with pytest.raises(AuthorizationDenied):
        await crud.replace_media(member, 'notes.txt', b'v2', 'text/plain')

    replaced = await crud.replace_media(admin, 'notes.txt', b'version two', 'text/plain')
    assert replaced.size == len(b'version two')
    _, data = await crud.read_media(member, 'notes.txt')
    assert data == b'version two'

    with pytest.raises(AuthorizationDenied):
        await crud.delete_media(member, 'notes.txt')
    await crud.delete_media(admin, 'notes.txt')
    with pytest.raises(NotFound):
        await crud.read_media(None, 'notes.txt')


@pytest.mark.asyncio
async def test_same_size_replace_by_member_is_rejected(pastor, member):
    await crud.upload_media(pastor, 'verse.txt', b'AAAA', 'text/plain')
    with pytest.raises(AuthorizationDenied):
        await crud.replace_media(member, 'verse.txt', b'EVIL', 'text/plain')
    obj, data = await crud.read_media(None, 'verse.txt')
    assert data == b'AAAA'
    assert obj.owner_id == pastor.id


@pytest.mark.asyncio
async def test_same_size_replace_by_pastor_bumps_updated_at(pastor):
    first = await crud.upload_media(pastor, 'verse.txt', b'AAAA', 'text/plain')
    second = await crud.replace_media(pastor, 'verse.txt', b'BBBB', 'text/plain')
    assert second.updated_at > first.updated_at
    _, data = await crud.read_media(None, 'verse.txt')
    assert data == b'BBBB'


@pytest.mark.asyncio
async def test_failed_replace_restores_previous_bytes(pastor, monkeypatch):
    await crud.upload_media(pastor, 'psalm.txt', b'old words', 'text/plain')

    async def failing_commit(session):
        await session.rollback()
        raise ConstraintViolation('commit failed')

    monkeypatch.setattr(crud, '_commit', failing_commit)
    with pytest.raises(ConstraintViolation):
        await crud.replace_media(pastor, 'psalm.txt', b'new words, longer', 'text/plain')
    monkeypatch.undo()

    obj, data = await crud.read_media(None, 'psalm.txt')
    assert data == b'old words'
    assert obj.size == len(b'old words')
    assert obj.content_type == 'text/plain'
