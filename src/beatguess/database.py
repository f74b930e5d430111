"""Engine and per-request sessions over the game store.

Postgres (asyncpg) in deployments. ``sqlite+aiosqlite`` URLs are accepted
for local runs and the test suite; an in-memory SQLite database only lives
as long as its one connection, so those engines pin a single connection.
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from beatguess.config import get_settings

_engine: AsyncEngine | None = None
_sessions: async_sessionmaker[AsyncSession] | None = None


def _engine_options(url: str) -> dict[str, Any]:
    settings = get_settings()
    if make_url(url).get_backend_name() == "sqlite":
        return {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
            "echo": settings.db_echo,
        }
    return {
        "pool_size": settings.db_pool_size,
        "max_overflow": settings.db_max_overflow,
        "pool_pre_ping": True,
        "echo": settings.db_echo,
    }


async def init_db(url: str) -> None:
    """Create the engine for ``url`` and the session factory bound to it."""
    global _engine, _sessions  # noqa: PLW0603
    _engine = create_async_engine(url, **_engine_options(url))
    # Rows handed to response schemas after commit must stay loaded
    _sessions = async_sessionmaker(_engine, class_=AsyncSession, expire_on_commit=False)


async def close_db() -> None:
    global _engine, _sessions  # noqa: PLW0603
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessions = None


def get_engine() -> AsyncEngine:
    if _engine is None:
        msg = "Game store not initialized; call init_db() first"
        raise RuntimeError(msg)
    return _engine


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request, closed (and rolled back if uncommitted) afterwards."""
    if _sessions is None:
        msg = "Game store not initialized; call init_db() first"
        raise RuntimeError(msg)
    async with _sessions() as session:
        yield session
