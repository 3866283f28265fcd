import os
import sys
from pathlib import Path
import pytest
import pytest_asyncio

# Configure test environment before the app creates its engine
os.environ['DATABASE_URL'] = 'sqlite+aiosqlite:///:memory:'
os.environ.setdefault('JWT_SECRET', 'test-secret')

# Ensure the package root is on sys.path when pytest changes CWD to this tests dir
HERE = Path(__file__).resolve()
PKG_ROOT = HERE.parents[2]
if str(PKG_ROOT) not in sys.path:
    sys.path.insert(0, str(PKG_ROOT))

from sqlalchemy.ext.asyncio import create_async_engine  # noqa: E402
from app.models import AsyncSessionLocal, Base, enable_sqlite_foreign_keys  # noqa: E402
from app import crud  # noqa: E402
from app.policies import Caller  # noqa: E402
from app.storage import LocalMediaStorage, set_media_storage  # noqa: E402


@pytest_asyncio.fixture
async def db(tmp_path):
    """Fresh SQLite database per test, with the media bucket seeded."""
    engine = enable_sqlite_foreign_keys(create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}"))
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    AsyncSessionLocal.configure(bind=engine)
    set_media_storage(LocalMediaStorage(root=str(tmp_path / 'media')))
    await crud.ensure_media_bucket()
    yield engine
    await engine.dispose()


def as_caller(identity) -> Caller:
    return Caller(id=identity.id, email=identity.email)


@pytest_asyncio.fixture
async def member(db):
    identity = await crud.create_identity('member@example.com', 'secret123', {'full_name': 'Mary Member'})
    return as_caller(identity)


@pytest_asyncio.fixture
async def other_member(db):
    identity = await crud.create_identity('other@example.com', 'secret123')
    return as_caller(identity)


@pytest_asyncio.fixture
async def pastor(db):
    identity = await crud.create_identity('pastor@example.com', 'secret123', {'full_name': 'Pastor Paul'})
    await crud.grant_role(identity.id, 'pastor')
    return as_caller(identity)


@pytest_asyncio.fixture
async def admin(db):
    identity = await crud.create_identity('admin@example.com', 'secret123')
    await crud.grant_role(identity.id, 'admin')
    return as_caller(identity)


@pytest.fixture
def png_bytes():
    import io
    from PIL import Image
    buf = io.BytesIO()
    Image.new('RGB', (4, 3), color=(200, 30, 30)).save(buf, format='PNG')
    return buf.getvalue()
