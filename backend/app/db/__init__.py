"""Database package."""

from app.db.base import (
    Base,
    async_session_maker,
    build_engine,
    build_session_maker,
    engine,
    get_db,
    init_db,
)

__all__ = [
    "Base",
    "async_session_maker",
    "build_engine",
    "build_session_maker",
    "engine",
    "get_db",
    "init_db",
]
