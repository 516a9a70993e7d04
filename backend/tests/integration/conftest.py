"""
Integration Test Fixtures

Provides fixtures for integration tests that run the real repositories,
services and routers against a throwaway SQLite database.

Each test gets its own database file, so tests are isolated without any
truncation. The test_client fixture overrides get_db so every request opens
its own session on that database, the same way production requests do.

Note: app.main is imported inside fixtures because it reads settings that
the parent conftest.py forces for the test run.
"""

from pathlib import Path
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from tests.factories import OTHER_USER_ID, USER_ID

pytestmark = pytest.mark.integration


# =============================================================================
# Database
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """Engine on a fresh SQLite file with all tables created."""
    from app.db.base import build_engine, init_db

    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'fixit.db'}")
    await init_db(bind=engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    from app.db.base import build_session_maker

    return build_session_maker(test_engine)


@pytest_asyncio.fixture(scope="function")
async def db_session(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a database session for seeding and direct repository tests.

    Tests that mix this session with API calls commit their seed data first.
    """
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()
            await session.close()


# =============================================================================
# HTTP Client
# =============================================================================


@pytest_asyncio.fixture(scope="function")
async def test_client(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """
    Async HTTP client bound to the app with get_db pointed at the test database.

    Requests carry USER_ID in the X-User-Id header unless a test overrides it.
    """
    from app.db.base import get_db
    from app.main import app

    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": USER_ID},
    ) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def other_user_headers() -> dict[str, str]:
    return {"X-User-Id": OTHER_USER_ID}
