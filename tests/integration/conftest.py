"""
Shared fixtures for integration tests.

Provides an in-memory SQLite database with the collector schema.
"""

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from collector.models import Base


@pytest_asyncio.fixture
async def engine():
    """
    Async engine over a fresh in-memory database.

    StaticPool keeps one connection so every session sees the same data.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def session_factory(engine):
    """Session maker configured like the application one."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    """Single database session."""
    async with session_factory() as session:
        yield session
