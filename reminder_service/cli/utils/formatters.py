"""Output formatting utilities for CLI commands."""

import click


def success(message: str) -> None:
    """Print a success message in green."""
    click.secho(f"✓ {message}", fg="green")


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def warning(message: str) -> None:
    """Print a warning message in yellow."""
    click.secho(f"⚠ {message}", fg="yellow")


def info(message: str) -> None:
    """Print an info message in blue."""
    click.secho(f"ℹ {message}", fg="blue")


def header(message: str) -> None:
    """Print a header message in cyan bold."""
    click.secho(f"\n{message}", fg="cyan", bold=True)


def status_line(name: str, status: dict) -> None:
    """Print a dependency status line from a check result dict."""
    click.echo(f"  {name:<15} ", nl=False)
    if not status.get("configured", True):
        click.secho("Not Configured", fg="yellow")
    elif status.get("healthy", False):
        click.secho("Healthy", fg="green", nl=False)
        click.echo(f" ({status['info']})" if status.get("info") else "")
    else:
        click.secho("Unhealthy", fg="red", nl=False)
        click.echo(f" - {status['error']}" if status.get("error") else "")
