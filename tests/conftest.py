"""Shared test fixtures.

Tests run against an in-memory SQLite database shared through a single
connection, with Redis disabled (the rate limiter lets requests through).
Seed data must be committed before requests are made: every request session
rolls back whatever is still pending on the shared connection when it ends.
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator

os.environ["BG_DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["BG_REDIS_ENABLED"] = "false"
os.environ["BG_LOG_FORMAT"] = "console"
os.environ["BG_LOG_LEVEL"] = "WARNING"

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from beatguess.auth.service import issue_api_key
from beatguess.config import get_settings
from beatguess.database import close_db, get_engine, init_db
from beatguess.db.base import Base
from beatguess.main import create_app

get_settings.cache_clear()


@pytest_asyncio.fixture
async def database() -> AsyncGenerator[None, None]:
    """Fresh schema in a fresh in-memory database for every test."""
    await init_db(get_settings().database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for seeding and service-level assertions."""
    async with AsyncSession(get_engine(), expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app (lifespan not run; the fixture owns the DB)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def read_key(db_session: AsyncSession) -> str:
    _, full_key = await issue_api_key(db_session, "search-client", ["read"])
    await db_session.commit()
    return full_key


@pytest_asyncio.fixture
async def write_key(db_session: AsyncSession) -> str:
    _, full_key = await issue_api_key(db_session, "game-server", ["read", "write"])
    await db_session.commit()
    return full_key
