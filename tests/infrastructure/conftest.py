"""Infrastructure test fixtures — in-memory SQLite session manager.

Invariants:
    - Every test gets a fresh in-memory SQLite database with all tables

Design Decisions:
    - DatabaseSessionManager built via __new__ so the test engine is shared by
      the manager and by direct assertions
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

import statebox.models  # noqa: F401
from statebox.db.base import Base
from statebox.infrastructure.database import DatabaseSessionManager


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def db_manager(test_engine):
    manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    manager.engine = test_engine
    manager._session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )
    return manager
