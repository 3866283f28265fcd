import uuid
from datetime import datetime
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from app import crud
from app.main import app


@pytest_asyncio.fixture
async def client(db):
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac


def parse_ts(value):
    return datetime.fromisoformat(value.replace('Z', '+00:00'))


async def signup(client, email, full_name=None):
    res = await client.post('/api/auth/signup', json={'email': email, 'password': 'secret123', 'full_name': full_name})
    assert res.status_code == 201, res.text
    body = res.json()
    return body['user_id'], {'Authorization': f"Bearer {body['access_token']}"}


@pytest.mark.asyncio
async def test_healthz(client):
    res = await client.get('/healthz')
    assert res.json() == {'status': 'ok'}


@pytest.mark.asyncio
async def test_signup_login_and_me(client):
    user_id, headers = await signup(client, 'ruth@example.com', 'Ruth')

    res = await client.post('/api/auth/login', data={'email': 'ruth@example.com', 'password': 'secret123'})
    assert res.status_code == 200
    assert res.json()['user_id'] == user_id

    res = await client.post('/api/auth/login', data={'email': 'ruth@example.com', 'password': 'nope'})
    assert res.status_code == 401

    me = (await client.get('/api/auth/me', headers=headers)).json()
    assert me['id'] == user_id
    assert me['role'] == 'member'
    assert me['full_name'] == 'Ruth'

    res = await client.post('/api/auth/signup', json={'email': 'ruth@example.com', 'password': 'secret123'})
    assert res.status_code == 409


@pytest.mark.asyncio
async def test_bad_or_missing_token(client):
    assert (await client.get('/api/bookmarks')).status_code == 401
    res = await client.get('/api/bookmarks', headers={'Authorization': 'Bearer garbage'})
    assert res.status_code == 401


@pytest.mark.asyncio
async def test_profile_edit_and_role_change(client):
    user_id, headers = await signup(client, 'naomi@example.com')
    res = await client.patch('/api/profiles/me', json={'full_name': 'Naomi'}, headers=headers)
    assert res.status_code == 200
    assert res.json()['full_name'] == 'Naomi'

    res = await client.put(f'/api/profiles/{user_id}/role', json={'role': 'admin'}, headers=headers)
    assert res.status_code == 403

    admin_id, admin_headers = await signup(client, 'boaz@example.com')
    await crud.grant_role(uuid.UUID(admin_id), 'admin')
    res = await client.put(f'/api/profiles/{user_id}/role', json={'role': 'pastor'}, headers=admin_headers)
    assert res.status_code == 200
    assert (await client.get(f'/api/profiles/{user_id}')).json()['role'] == 'pastor'


@pytest.mark.asyncio
async def test_bookmarks_are_private(client):
    _, alice = await signup(client, 'alice@example.com')
    _, bob = await signup(client, 'bob@example.com')
    payload = {'book_id': 'JHN', 'book_name': 'John', 'chapter': 3, 'verse': 16, 'verse_text': 'For God so loved'}
    res = await client.post('/api/bookmarks', json=payload, headers=alice)
    assert res.status_code == 201
    bookmark_id = res.json()['id']

    assert len((await client.get('/api/bookmarks', headers=alice)).json()) == 1
    assert (await client.get('/api/bookmarks', headers=bob)).json() == []
    assert (await client.get(f'/api/bookmarks/{bookmark_id}', headers=bob)).status_code == 404
    assert (await client.delete(f'/api/bookmarks/{bookmark_id}', headers=bob)).status_code == 404
    assert (await client.delete(f'/api/bookmarks/{bookmark_id}', headers=alice)).status_code == 204


@pytest.mark.asyncio
async def test_story_flow(client):
    pastor_id, pastor = await signup(client, 'paul@example.com', 'Paul')
    _, member = await signup(client, 'timothy@example.com')

    story = {'type': 'verse', 'content': 'Rejoice always', 'verse_reference': '1 Thess 5:16'}
    assert (await client.post('/api/stories', json=story, headers=member)).status_code == 403

    await crud.grant_role(uuid.UUID(pastor_id), 'pastor')
    res = await client.post('/api/stories', json=story, headers=pastor)
    assert res.status_code == 201
    created = res.json()
    assert created['author_name'] == 'Paul'
    assert created['likes_count'] == 0

    feed = (await client.get('/api/stories')).json()
    assert [s['id'] for s in feed] == [created['id']]

    assert (await client.post(f"/api/stories/{created['id']}/like", headers=member)).status_code == 201
    assert (await client.post(f"/api/stories/{created['id']}/like", headers=member)).status_code == 409
    assert (await client.get(f"/api/stories/{created['id']}")).json()['likes_count'] == 1
    assert len((await client.get(f"/api/stories/{created['id']}/likes")).json()) == 1
    assert (await client.delete(f"/api/stories/{created['id']}/like", headers=member)).status_code == 204

    res = await client.patch(f"/api/stories/{created['id']}", json={'is_published': False}, headers=pastor)
    assert res.status_code == 200
    assert (await client.get(f"/api/stories/{created['id']}")).status_code == 404
    assert (await client.get(f"/api/stories/{created['id']}", headers=pastor)).status_code == 200

    res = await client.post('/api/stories', json={'type': 'poem', 'content': 'x'}, headers=pastor)
    assert res.status_code == 422


@pytest.mark.asyncio
async def test_daily_manna_by_date(client):
    pastor_id, pastor = await signup(client, 'deborah@example.com')
    await crud.grant_role(uuid.UUID(pastor_id), 'pastor')
    entry = {'date': '2026-03-01', 'title': 'Strength', 'verse_reference': 'Isa 40:31',
             'verse_text': 'They shall mount up with wings', 'reflection': 'Wait on the Lord.'}
    assert (await client.post('/api/manna', json=entry, headers=pastor)).status_code == 201
    assert (await client.post('/api/manna', json=entry, headers=pastor)).status_code == 409

    res = await client.get('/api/manna/date/2026-03-01')
    assert res.status_code == 200
    assert res.json()['title'] == 'Strength'
    assert (await client.get('/api/manna/date/2026-03-02')).status_code == 404
    assert len((await client.get('/api/manna')).json()) == 1


@pytest.mark.asyncio
async def test_notes_round_trip(client):
    _, headers = await signup(client, 'lydia@example.com')
    res = await client.post('/api/notes', json={'book_id': 'ACT', 'chapter': 16, 'verse': 14, 'content': 'Purple'},
                            headers=headers)
    note_id = res.json()['id']
    res = await client.patch(f'/api/notes/{note_id}', json={'content': 'Seller of purple'}, headers=headers)
    assert res.json()['content'] == 'Seller of purple'
    edited = res.json()
    assert parse_ts(edited['updated_at']) > parse_ts(edited['created_at'])
    assert (await client.delete(f'/api/notes/{note_id}', headers=headers)).status_code == 204
    assert (await client.get(f'/api/notes/{note_id}', headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_media_upload_and_download(client, png_bytes):
    pastor_id, pastor = await signup(client, 'silas@example.com')
    _, member = await signup(client, 'john@example.com')
    files = {'file': ('cover.png', png_bytes, 'image/png')}

    assert (await client.post('/api/media', files=files, headers=member)).status_code == 403

    await crud.grant_role(uuid.UUID(pastor_id), 'pastor')
    res = await client.post('/api/media', files=files, data={'name': 'stories/cover.png'}, headers=pastor)
    assert res.status_code == 201, res.text
    body = res.json()
    assert body['metadata']['width'] == 4
    assert body['public_url'].endswith('/media/stories/cover.png')

    res = await client.get('/api/media/stories/cover.png')
    assert res.status_code == 200
    assert res.content == png_bytes
    assert res.headers['content-type'] == 'image/png'

    assert (await client.delete('/api/media/stories/cover.png', headers=member)).status_code == 403
    assert (await client.delete('/api/media/stories/cover.png', headers=pastor)).status_code == 204
    assert (await client.get('/api/media/stories/cover.png')).status_code == 404


@pytest.mark.asyncio
async def test_delete_account(client):
    user_id, headers = await signup(client, 'demas@example.com')
    assert (await client.delete('/api/auth/me', headers=headers)).status_code == 204
    assert (await client.get(f'/api/profiles/{user_id}')).status_code == 404
