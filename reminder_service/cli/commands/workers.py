"""Reminder pipeline commands: run workers, scan once, check dependencies."""

from __future__ import annotations

import sys

import click

from reminder_service.cli.utils import coro, error, header, info, status_line, success, warning


@click.command(name="run")
@click.option("--no-scanner", is_flag=True, help="Do not run the due-date scanner.")
@click.option("--no-consumer", is_flag=True, help="Do not run reminder consumers.")
@click.option(
    "--consumers",
    type=click.IntRange(1, 32),
    default=None,
    help="Number of consumer instances (default: REMINDER_CONSUMER_INSTANCES).",
)
@coro
async def run(no_scanner: bool, no_consumer: bool, consumers: int | None) -> None:
    """Run the due-date scanner and reminder consumers until SIGINT/SIGTERM.

    Examples:
        \b
        reminder-service run
        reminder-service run --no-scanner --consumers 3
    """
    from reminder_service.workers.host import run_workers

    await run_workers(
        run_scanner=False if no_scanner else None,
        run_consumer=False if no_consumer else None,
        consumers=consumers,
    )


@click.command(name="scan-once")
@coro
async def scan_once() -> None:
    """Run a single due-date scan and print its result."""
    from reminder_service.features.reminders.scanner import DueDateScanner
    from reminder_service.infra.database import close_database

    try:
        result = await DueDateScanner().scan_and_dispatch()
    except Exception as e:
        error(f"Scan failed: {e}")
        sys.exit(1)
    finally:
        await close_database()

    if result.is_noop:
        info("No overdue tasks found")
        return

    click.echo(f"  Found:      {result.found}")
    click.echo(f"  Published:  {result.published}")
    click.echo(f"  Marked:     {result.marked}")
    click.echo(f"  Conflicts:  {result.conflicts}")
    if result.publish_failed:
        warning("Publishing stopped early; remaining tasks will be retried on the next scan")
    else:
        success("Scan complete")


@click.command(name="check")
@coro
async def check() -> None:
    """Verify database and RabbitMQ connectivity."""
    header("Dependency Check")

    db_status = await _check_database()
    status_line("Database", db_status)
    rabbit_status = await _check_rabbitmq()
    status_line("RabbitMQ", rabbit_status)

    click.echo()
    statuses = [s for s in (db_status, rabbit_status) if s.get("configured", True)]
    if all(s.get("healthy", False) for s in statuses):
        success("All dependencies are reachable")
    else:
        error("Some dependencies are unreachable")
        sys.exit(1)


async def _check_database() -> dict:
    """Check database connectivity."""
    from sqlalchemy import text

    from reminder_service.core.settings import get_db_settings
    from reminder_service.infra.database import close_database, get_async_session

    db_settings = get_db_settings()
    if not db_settings.is_configured:
        return {"configured": False}

    try:
        async with get_async_session() as session:
            await session.execute(text("SELECT 1"))
        dialect = db_settings.get_sqlalchemy_url().split("://")[0]
        return {"healthy": True, "configured": True, "info": dialect}
    except Exception as e:
        return {"healthy": False, "configured": True, "error": str(e)}
    finally:
        await close_database()


async def _check_rabbitmq() -> dict:
    """Check RabbitMQ connectivity."""
    from reminder_service.core.settings import get_rabbit_settings
    from reminder_service.infra.messaging import close_quietly, connect

    rabbit_settings = get_rabbit_settings()
    if not rabbit_settings.is_configured:
        return {"configured": False}

    try:
        connection = await connect(rabbit_settings)
        await close_quietly(connection)
        return {
            "healthy": True,
            "configured": True,
            "info": f"{rabbit_settings.host}:{rabbit_settings.port}",
        }
    except Exception as e:
        return {"healthy": False, "configured": True, "error": str(e)}
