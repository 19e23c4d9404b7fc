"""Shared pytest fixtures for the reminder service test suite."""

from __future__ import annotations

import os
from datetime import UTC, datetime
from itertools import count

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Keep tests hermetic: no broker, no shared database, no log files.
os.environ.setdefault("RABBIT_ENABLED", "false")
os.environ.setdefault("DB_ENABLED", "false")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LOG_JSON", "false")
os.environ.setdefault("REMINDER_RECONNECT_DELAY_SECONDS", "0.01")

from reminder_service.core.database import Base  # noqa: E402
from reminder_service.core.settings import clear_all_caches  # noqa: E402
from reminder_service.features.tasks.models import Task  # noqa: E402
from tests.fixtures.rabbit import FakeBroker  # noqa: E402


# ============================================================================
# Settings
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Reload settings for every test so env changes take effect."""
    clear_all_caches()
    yield
    clear_all_caches()


# ============================================================================
# Database
# ============================================================================


@pytest.fixture
async def db_engine(tmp_path):
    """File-backed SQLite engine with all tables created.

    A file (rather than :memory:) lets several sessions see the same data,
    which the concurrency tests rely on.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    """Single session for tests that only need one."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_task(session_factory):
    """Factory inserting a committed task and returning it.

    Example:
        task = await make_task(due_date=datetime(2026, 1, 1, tzinfo=UTC))
    """
    ids = count(1)

    async def _make_task(**overrides) -> Task:
        n = next(ids)
        values = {
            "title": f"Task {n}",
            "description": None,
            "due_date": datetime(2026, 1, 1, tzinfo=UTC),
            "user_full_name": "Dana Cohen",
            "user_telephone": "050-1234567",
            "user_email": "dana.cohen@example.com",
        }
        values.update(overrides)
        async with session_factory() as session:
            task = Task(**values)
            session.add(task)
            await session.commit()
            return task

    return _make_task


# ============================================================================
# Messaging
# ============================================================================


@pytest.fixture
def broker() -> FakeBroker:
    """In-memory stand-in for RabbitMQ."""
    return FakeBroker()
