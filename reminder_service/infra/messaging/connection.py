"""RabbitMQ connection helpers built on aio-pika.

Connections here are plain (non-robust) ``aio_pika.connect`` connections:
the reminder consumer runs its own reconnect loop and needs to see a dead
connection instead of having it silently restored underneath it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import aio_pika

from reminder_service.core.exceptions import BrokerUnavailableError
from reminder_service.core.settings import get_rabbit_settings

if TYPE_CHECKING:
    from aio_pika.abc import AbstractChannel, AbstractConnection, AbstractQueue

    from reminder_service.core.settings import RabbitSettings

logger = logging.getLogger(__name__)


def build_connection_url(settings: RabbitSettings) -> str:
    """Effective AMQP URL including the heartbeat query parameter."""
    return f"{settings.get_url()}?heartbeat={settings.heartbeat}"


async def connect(settings: RabbitSettings | None = None) -> AbstractConnection:
    """Open a new connection to RabbitMQ.

    Raises:
        BrokerUnavailableError: If RabbitMQ is disabled or the connection
            attempt fails.
    """
    settings = settings or get_rabbit_settings()
    if not settings.is_configured:
        raise BrokerUnavailableError("RabbitMQ is not enabled")

    try:
        connection = await aio_pika.connect(
            build_connection_url(settings),
            timeout=settings.connection_timeout,
            client_properties={"connection_name": settings.connection_name},
        )
    except Exception as e:
        raise BrokerUnavailableError(
            f"Could not connect to RabbitMQ: {e}",
            url=settings.safe_url,
        ) from e

    logger.debug("RabbitMQ connection opened", extra={"url": settings.safe_url})
    return connection


async def declare_reminder_queue(channel: AbstractChannel, queue_name: str) -> AbstractQueue:
    """Declare the durable reminder queue. Idempotent."""
    return await channel.declare_queue(queue_name, durable=True)


async def close_quietly(*resources: AbstractChannel | AbstractConnection | None) -> None:
    """Close channels/connections in order, logging (not raising) failures."""
    for resource in resources:
        if resource is None or resource.is_closed:
            continue
        try:
            await resource.close()
        except Exception:
            logger.warning("Error closing RabbitMQ resource", exc_info=True)
