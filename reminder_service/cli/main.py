"""Main CLI entry point for reminder-service commands."""

import click

from reminder_service import __version__
from reminder_service.cli.commands import database, workers
from reminder_service.infra.logging import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="reminder-service")
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Reminder Service CLI - overdue-task reminders over RabbitMQ.

    \b
    Commands:
      run        Run the due-date scanner and reminder consumers
      scan-once  Run a single due-date scan
      check      Verify database and RabbitMQ connectivity
      db         Task store management

    \b
    Quick Start:
      reminder-service db init     # Create tables
      reminder-service db seed     # Insert sample tasks
      reminder-service run         # Start workers
    """
    ctx.ensure_object(dict)


cli.add_command(workers.run)
cli.add_command(workers.scan_once)
cli.add_command(workers.check)
cli.add_command(database.db)


def main() -> None:
    """Entry point for CLI."""
    setup_logging()
    cli(obj={})


if __name__ == "__main__":
    main()
