"""
Pytest fixtures for the stock control backend.

Each test gets its own SQLite file database (foreign keys on, so the
category -> items cascade behaves like Postgres) and an httpx client bound
to the FastAPI app with the session dependency pointed at it.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from db.database import create_db_and_tables, get_async_session, make_engine
from db.repository import InventoryRepository
from main import app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 256


@pytest.fixture
async def engine(tmp_path):
    engine = make_engine(f"sqlite+aiosqlite:///{tmp_path / 'stock.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
def repo(session):
    return InventoryRepository(session)


@pytest.fixture
async def category(repo):
    return await repo.create_category("Gas Stove Parts", "🔥")


@pytest.fixture
async def client(session_maker):
    async def _session():
        async with session_maker() as s:
            yield s

    app.dependency_overrides[get_async_session] = _session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def png_bytes():
    return PNG_BYTES
