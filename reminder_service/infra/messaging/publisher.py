"""Per-scan publisher for reminder messages."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Self

import aio_pika
from aio_pika import DeliveryMode

from reminder_service.core.settings import get_rabbit_settings
from reminder_service.features.reminders.schemas import CONTENT_ENCODING, CONTENT_TYPE
from reminder_service.infra.messaging.connection import (
    close_quietly,
    connect,
    declare_reminder_queue,
)

if TYPE_CHECKING:
    from types import TracebackType

    from aio_pika.abc import AbstractChannel, AbstractConnection

    from reminder_service.core.settings import RabbitSettings
    from reminder_service.features.reminders.schemas import ReminderMessage

logger = logging.getLogger(__name__)

MESSAGE_TYPE = "task-reminder"


class ReminderPublisher:
    """Publishes reminders to the durable queue through the default exchange.

    Used as an async context manager: entering opens a connection and a
    channel with publisher confirms and declares the queue; leaving closes
    both.

    Example:
        async with ReminderPublisher() as publisher:
            await publisher.publish(message)
    """

    def __init__(self, settings: RabbitSettings | None = None) -> None:
        self.settings = settings or get_rabbit_settings()
        self.queue_name = self.settings.queue_name
        self._connection: AbstractConnection | None = None
        self._channel: AbstractChannel | None = None

    async def __aenter__(self) -> Self:
        self._connection = await connect(self.settings)
        try:
            self._channel = await self._connection.channel(publisher_confirms=True)
            await declare_reminder_queue(self._channel, self.queue_name)
        except BaseException:
            await close_quietly(self._channel, self._connection)
            raise
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await close_quietly(self._channel, self._connection)
        self._channel = None
        self._connection = None

    async def publish(self, message: ReminderMessage) -> None:
        """Publish one reminder as a persistent JSON message.

        Returns once the broker has confirmed the message.
        """
        if self._channel is None:
            raise RuntimeError("ReminderPublisher used outside its context")

        await self._channel.default_exchange.publish(
            aio_pika.Message(
                body=message.to_bytes(),
                content_type=CONTENT_TYPE,
                content_encoding=CONTENT_ENCODING,
                delivery_mode=DeliveryMode.PERSISTENT,
                timestamp=message.sent_at,
                type=MESSAGE_TYPE,
            ),
            routing_key=self.queue_name,
        )
        logger.debug(
            "Reminder published",
            extra={"task_id": message.task_id, "queue": self.queue_name},
        )
