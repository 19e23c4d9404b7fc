"""Task store management commands.

Example:bash
    # Create missing tables
    reminder-service db init

    # Insert default tags and sample tasks
    reminder-service db seed
"""

import sys

import click

from reminder_service.cli.utils import coro, error, info, success


@click.group(name="db")
def db() -> None:
    """Task store management commands."""


@db.command()
@coro
async def init() -> None:
    """Verify database connectivity and create missing tables."""
    from reminder_service.infra.database import close_database, init_database

    info("Initializing database...")
    try:
        await init_database(create_tables=True)
        success("Database ready")
    except Exception as e:
        error(f"Database initialization failed: {e}")
        sys.exit(1)
    finally:
        await close_database()


@db.command()
@coro
async def seed() -> None:
    """Insert default tags and sample tasks (idempotent)."""
    from reminder_service.features.tasks.seed import count_tasks, seed_database
    from reminder_service.infra.database import close_database, get_async_session, init_database

    try:
        await init_database(create_tables=True)
        async with get_async_session() as session:
            result = await seed_database(session)
            await session.commit()
            total = await count_tasks(session)
    except Exception as e:
        error(f"Seeding failed: {e}")
        sys.exit(1)
    finally:
        await close_database()

    success(f"Created {result.tags_created} tags and {result.tasks_created} tasks")
    info(f"Task store now holds {total} tasks")
