"""Async database engine and session management.

The engine is created lazily from ``PostgresSettings`` on first use, so
importing this module never opens a connection.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from reminder_service.core.database import Base
from reminder_service.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, creating it on first call."""
    global _engine, _session_factory

    if _engine is None:
        db_settings = get_db_settings()
        if not db_settings.is_configured:
            raise RuntimeError("Database is not configured (set DB_ENABLED / DATABASE_URL)")
        _engine = create_async_engine(
            db_settings.get_sqlalchemy_url(),
            **db_settings.sqlalchemy_engine_kwargs(),
        )
        _session_factory = None
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to the process-wide engine."""
    global _session_factory

    if _session_factory is None:
        _session_factory = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )
    return _session_factory


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Get async database session.

    Yields:
        Database session that is automatically closed.

    Example:
        async with get_async_session() as session:
            result = await session.execute(select(Task))
            tasks = result.scalars().all()
    """
    async with get_session_factory()() as session:
        try:
            yield session
        finally:
            await session.close()


async def init_database(*, create_tables: bool = True) -> None:
    """Verify database connectivity and create missing tables.

    Raises:
        Exception: The underlying driver error if the database is unreachable.
    """
    db_settings = get_db_settings()
    engine = get_engine()
    logger.info("Initializing database connection", extra={"url": _safe_url(engine)})

    # Import models so their tables are registered on Base.metadata
    from reminder_service.features.tasks import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
            if create_tables:
                await conn.run_sync(Base.metadata.create_all)
    except Exception as e:
        logger.error(
            "Failed to connect to database",
            extra={"url": _safe_url(engine), "error": str(e), "host": db_settings.host},
        )
        raise

    logger.info("Database connection established successfully", extra={"url": _safe_url(engine)})


async def close_database() -> None:
    """Dispose of the engine and forget it.

    This should be called during shutdown.
    """
    global _engine, _session_factory

    if _engine is None:
        return

    logger.info("Closing database connection")
    try:
        await _engine.dispose()
        logger.info("Database connection closed successfully")
    except Exception as e:
        logger.exception("Error closing database connection", extra={"error": str(e)})
    finally:
        _engine = None
        _session_factory = None


def _safe_url(engine: AsyncEngine) -> str:
    return engine.url.render_as_string(hide_password=True)
