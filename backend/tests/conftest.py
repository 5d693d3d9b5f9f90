"""Shared pytest fixtures."""

import os

# Must be set before babytrack.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("SYNC_CLIENT_ID", "")
os.environ.setdefault("SYNC_PULL_SETTLE_SECONDS", "0")

import httpx
import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlalchemy.pool import StaticPool

import babytrack.models  # noqa: F401
from babytrack.core.rate_limit import reset_rate_limits
from babytrack.core.security import create_access_token
from babytrack.database import Base, build_engine, get_db
from babytrack.main import app
from babytrack.offline.api import SyncApiClient
from babytrack.offline.store import LocalStore

CALLER_ID = "parent-1"


@pytest.fixture
async def engine():
    """A fresh in-memory server database per test."""
    eng = build_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def server(session_factory):
    """The FastAPI app wired to the test database."""
    async def _get_test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = _get_test_db
    reset_rate_limits()
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {create_access_token(CALLER_ID)}"}


@pytest.fixture
async def http(server):
    transport = httpx.ASGITransport(app=server)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def api(server) -> SyncApiClient:
    """Device-side API client talking to the in-process server."""
    return SyncApiClient(
        base_url="http://test",
        token=create_access_token(CALLER_ID),
        timeout=5,
        transport=httpx.ASGITransport(app=server),
    )


@pytest.fixture
async def make_store():
    """Factory for independent in-memory device stores."""
    opened: list[LocalStore] = []

    async def _open(client_id: str) -> LocalStore:
        local = await LocalStore.open("sqlite+aiosqlite://", client_id=client_id, poolclass=StaticPool)
        opened.append(local)
        return local

    yield _open
    for local in opened:
        await local.close()


@pytest.fixture
async def store(make_store):
    return await make_store("device-a")
