"""Reminder consumer: drains the reminder queue one message at a time.

State machine::

    CONNECTING ──connected──▶ CONSUMING ──cancel──▶ STOPPING ──▶ STOPPED
        ▲  │                      │
        │  └──cancel──────────────┼──────────────────────────────▶ STOPPED
        └──────connection lost────┘

While CONNECTING, failures are retried after a fixed delay until the
cancellation token fires. While CONSUMING, every delivery is decoded and
logged, then acknowledged; undecodable or failing deliveries are
negatively acknowledged with requeue. Prefetch is 1, so each instance
holds at most one unacknowledged message.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

from reminder_service.core.exceptions import ConnectionLostError, MessageDecodeError
from reminder_service.core.settings import get_rabbit_settings, get_reminder_settings
from reminder_service.features.reminders.schemas import ReminderMessage
from reminder_service.infra.messaging.connection import (
    close_quietly,
    connect,
    declare_reminder_queue,
)
from reminder_service.infra.metrics.prometheus import (
    reminder_consumer_connect_failures_total,
    reminder_consumers_connected,
    reminder_deliveries_total,
)
from reminder_service.utils.cancellation import OperationCancelledError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from aio_pika.abc import (
        AbstractChannel,
        AbstractConnection,
        AbstractIncomingMessage,
        AbstractQueue,
    )

    from reminder_service.core.settings import RabbitSettings
    from reminder_service.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)

PREFETCH_COUNT = 1


class ConsumerState(str, Enum):
    """Lifecycle states of a reminder consumer."""

    CONNECTING = "connecting"
    CONSUMING = "consuming"
    STOPPING = "stopping"
    STOPPED = "stopped"


class ReminderConsumer:
    """Consumes reminder messages with manual acknowledgment.

    Several instances may share the queue; delivery is at-least-once.
    """

    def __init__(
        self,
        *,
        name: str = "reminder-consumer-1",
        settings: RabbitSettings | None = None,
        reconnect_delay_seconds: float | None = None,
        connect_factory: Callable[[RabbitSettings], Awaitable[AbstractConnection]] | None = None,
    ) -> None:
        if reconnect_delay_seconds is None:
            reconnect_delay_seconds = get_reminder_settings().reconnect_delay_seconds
        self.name = name
        self.settings = settings or get_rabbit_settings()
        self.queue_name = self.settings.queue_name
        self.reconnect_delay_seconds = reconnect_delay_seconds
        self._connect = connect_factory or connect
        self._state = ConsumerState.STOPPED

    @property
    def state(self) -> ConsumerState:
        return self._state

    async def run(self, token: CancellationToken) -> bool:
        """Consume until ``token`` is cancelled.

        Returns:
            False if cancellation arrived while (re)connecting, so no
            connection was available to shut down; True otherwise.
        """
        stopped_cleanly = True

        while not token.is_cancelled:
            self._state = ConsumerState.CONNECTING
            opened = await self._connect_until_ready(token)
            if opened is None:
                stopped_cleanly = False
                logger.error(
                    "Could not establish RabbitMQ connection. Consumer stopping.",
                    extra={"consumer": self.name},
                )
                break

            connection, channel, queue = opened
            self._state = ConsumerState.CONSUMING
            reminder_consumers_connected.inc()
            try:
                await self._consume(queue, token)
            except Exception:
                if not token.is_cancelled:
                    logger.exception(
                        "Reminder consumer lost its broker connection, reconnecting",
                        extra={"consumer": self.name},
                    )
            finally:
                reminder_consumers_connected.dec()
                if token.is_cancelled:
                    self._state = ConsumerState.STOPPING
                await close_quietly(channel, connection)

        self._state = ConsumerState.STOPPED
        logger.info("Reminder consumer stopped", extra={"consumer": self.name})
        return stopped_cleanly

    async def _connect_until_ready(
        self, token: CancellationToken
    ) -> tuple[AbstractConnection, AbstractChannel, AbstractQueue] | None:
        """Retry opening connection, channel and queue until it works or is cancelled."""
        attempt = 0
        while not token.is_cancelled:
            attempt += 1
            try:
                return await token.wait_for(self._open())
            except OperationCancelledError:
                return None
            except Exception as e:
                reminder_consumer_connect_failures_total.inc()
                logger.warning(
                    "RabbitMQ not reachable, retrying",
                    extra={
                        "consumer": self.name,
                        "attempt": attempt,
                        "retry_in_seconds": self.reconnect_delay_seconds,
                        "error": str(e),
                    },
                )
            if await token.sleep(self.reconnect_delay_seconds):
                return None
        return None

    async def _open(self) -> tuple[AbstractConnection, AbstractChannel, AbstractQueue]:
        connection = await self._connect(self.settings)
        channel: AbstractChannel | None = None
        try:
            channel = await connection.channel()
            await channel.set_qos(prefetch_count=PREFETCH_COUNT)
            queue = await declare_reminder_queue(channel, self.queue_name)
        except BaseException:
            await close_quietly(channel, connection)
            raise

        logger.info(
            "Reminder consumer connected",
            extra={"consumer": self.name, "queue": self.queue_name},
        )
        return connection, channel, queue

    async def _consume(self, queue: AbstractQueue, token: CancellationToken) -> None:
        messages = queue.iterator()
        try:
            while not token.is_cancelled:
                try:
                    message = await token.wait_for(anext(messages))
                except OperationCancelledError:
                    return
                except StopAsyncIteration as e:
                    raise ConnectionLostError(
                        "Reminder queue iterator closed", queue=self.queue_name
                    ) from e

                await self.handle_delivery(message)
        finally:
            try:
                await messages.close()
            except Exception:
                logger.debug("Error closing queue iterator", exc_info=True)

    async def handle_delivery(self, message: AbstractIncomingMessage) -> bool:
        """Process one delivery and acknowledge it.

        Returns:
            True if the message was acknowledged, False if it was
            negatively acknowledged for redelivery.
        """
        try:
            reminder = ReminderMessage.from_bytes(message.body)
            self.process(reminder)
        except MessageDecodeError as e:
            logger.error(
                "Could not decode reminder delivery, requeueing",
                extra={"consumer": self.name, "delivery_tag": message.delivery_tag, **e.details},
            )
            await message.nack(requeue=True)
            reminder_deliveries_total.labels(outcome="nacked").inc()
            return False
        except Exception:
            logger.exception(
                "Error processing reminder delivery",
                extra={"consumer": self.name, "delivery_tag": message.delivery_tag},
            )
            await message.nack(requeue=True)
            reminder_deliveries_total.labels(outcome="nacked").inc()
            return False

        await message.ack()
        reminder_deliveries_total.labels(outcome="acked").inc()
        return True

    def process(self, reminder: ReminderMessage) -> None:
        """Handle a decoded reminder. Emits one log record per reminder."""
        logger.warning(
            "Task due: %s (id=%s, due=%s), assigned to %s (%s)",
            reminder.title,
            reminder.task_id,
            reminder.due_date.isoformat(),
            reminder.user_full_name,
            reminder.user_email,
            extra={
                "consumer": self.name,
                "task_id": reminder.task_id,
                "due_date": reminder.due_date.isoformat(),
                "user_email": reminder.user_email,
                "sent_at": reminder.sent_at.isoformat(),
            },
        )
