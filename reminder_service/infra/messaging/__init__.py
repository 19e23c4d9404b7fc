"""RabbitMQ messaging for task reminders (aio-pika).

- connection: open connections, declare the durable reminder queue
- publisher: per-scan publisher with persistent messages and confirms
"""

from __future__ import annotations

from reminder_service.infra.messaging.connection import (
    build_connection_url,
    close_quietly,
    connect,
    declare_reminder_queue,
)

__all__ = [
    "build_connection_url",
    "close_quietly",
    "connect",
    "declare_reminder_queue",
]
