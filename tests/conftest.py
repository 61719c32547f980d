"""
Pytest Configuration and Fixtures

Everything runs in-process: the reconciliation API is served through
httpx.ASGITransport and both replicas live in throwaway SQLite files.
"""

import os

# ---------------------------------------------------------------------------
# Test environment defaults: MUST be before any notesync imports.
# ---------------------------------------------------------------------------
_test_env = {
    "DATABASE_URL": "sqlite+aiosqlite:///:memory:",
    "JWT_SECRET": "test-secret-key-for-testing-only",
    "SYNC_API_URL": "http://test/api/v1/notes",
    "LOG_LEVEL": "DEBUG",
}
for _key, _value in _test_env.items():
    os.environ.setdefault(_key, _value)

# ---------------------------------------------------------------------------
# Imports (safe now that env vars are set)
# ---------------------------------------------------------------------------
from collections.abc import AsyncGenerator  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from notesync.client.store import SqlLocalStore, create_local_store  # noqa: E402
from notesync.client.transport import RemoteNotesClient  # noqa: E402
from notesync.core.database import get_db  # noqa: E402
from notesync.core.security import create_access_token  # noqa: E402
from notesync.main import app  # noqa: E402
from notesync.models import Base, Note  # noqa: E402

API_BASE = "http://test/api/v1/notes"


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker, None]:
    """Authoritative database in a fresh SQLite file per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'server.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=[Note.__table__])

    yield async_sessionmaker(engine, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_app(session_factory):
    """FastAPI app whose requests use the per-test database."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def alice_token() -> str:
    return create_access_token("alice")


@pytest.fixture
def bob_token() -> str:
    return create_access_token("bob")


@pytest_asyncio.fixture
async def api_client(test_app, alice_token) -> AsyncGenerator[httpx.AsyncClient, None]:
    """HTTP client authenticated as alice, rooted at the notes collection."""
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=test_app),
        base_url=API_BASE,
        headers={"Authorization": f"Bearer {alice_token}"},
    ) as client:
        yield client


@pytest.fixture
def remote(test_app) -> RemoteNotesClient:
    """Sync transport routed straight into the in-process API."""
    return RemoteNotesClient(
        base_url=API_BASE,
        timeout=5.0,
        transport=httpx.ASGITransport(app=test_app),
    )


async def _open_store(path) -> SqlLocalStore:
    return await create_local_store(f"sqlite+aiosqlite:///{path}")


@pytest_asyncio.fixture
async def local_store(tmp_path) -> AsyncGenerator[SqlLocalStore, None]:
    """Device replica in a fresh SQLite file."""
    store = await _open_store(tmp_path / "device.db")
    yield store
    await store.close()


@pytest_asyncio.fixture
async def second_store(tmp_path) -> AsyncGenerator[SqlLocalStore, None]:
    """Replica of a second device for the same user."""
    store = await _open_store(tmp_path / "device-2.db")
    yield store
    await store.close()
