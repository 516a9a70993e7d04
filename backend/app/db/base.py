"""
Database Engine and Sessions

One async engine per process, built from settings.DATABASE_URL. Production
runs on PostgreSQL through asyncpg; DATABASE_URL_OVERRIDE points the app at
any other async driver, which is how the test suite runs on aiosqlite.

Sessions keep attributes loaded after commit (expire_on_commit=False) so
services can build response models from rows they just committed.
"""

import logging
from collections.abc import AsyncGenerator
from typing import Any, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from app.config import settings, yaml_config

logger = logging.getLogger(__name__)


def _pool_options(url: str) -> dict[str, Any]:
    # SQLite drivers bring their own pool and reject QueuePool arguments
    if url.startswith("sqlite"):
        return {}

    pool: dict[str, Any] = yaml_config.get("database", {})
    return {
        "pool_size": pool.get("pool_size", 5),
        "max_overflow": pool.get("max_overflow", 10),
        "pool_timeout": pool.get("pool_timeout", 30),
    }


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine with pool settings from config/default.yaml."""
    return create_async_engine(url, echo=echo, **_pool_options(url))


def build_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
async_session_maker = build_session_maker(engine)


class Base(DeclarativeBase):
    """Declarative base shared by every Fixit table."""


# Registers the tables on Base.metadata; must follow the Base definition
from app.db import models  # noqa: F401, E402


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency yielding one session per request.

    Services commit their own unit of work; the commit here only flushes
    anything left pending, and any exception rolls the request back.
    """
    async with async_session_maker() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db(bind: Optional[AsyncEngine] = None) -> None:
    """Create missing tables on the given engine (the app engine by default)."""
    target = bind or engine
    async with target.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database ready: {len(Base.metadata.tables)} tables")
