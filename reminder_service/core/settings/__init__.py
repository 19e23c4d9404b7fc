"""Modular Pydantic Settings v2 configuration.

One frozen settings model per concern, loaded from environment variables
(and an optional .env file) and cached by the loaders below:

- ``DB_*``: task store connection
- ``RABBIT_*``: broker connection and reminder queue
- ``LOG_*``: logging
- ``REMINDER_*``: scanner/consumer behaviour
"""

from __future__ import annotations

from .loader import (
    clear_all_caches,
    get_db_settings,
    get_logging_settings,
    get_rabbit_settings,
    get_reminder_settings,
)
from .logs import LoggingSettings
from .postgres import PostgresSettings
from .rabbit import RabbitSettings
from .reminders import ReminderSettings

__all__ = [
    "LoggingSettings",
    "PostgresSettings",
    "RabbitSettings",
    "ReminderSettings",
    "clear_all_caches",
    "get_db_settings",
    "get_logging_settings",
    "get_rabbit_settings",
    "get_reminder_settings",
]
