"""Logging infrastructure.

Usage:
    from reminder_service.infra.logging import setup_logging

    setup_logging()  # reads LOG_* settings once per process
"""

from reminder_service.infra.logging.config import configure_logging, setup_logging, shutdown
from reminder_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "JSONFormatter",
    "configure_logging",
    "setup_logging",
    "shutdown",
]
