"""Due-date scanner: publishes one reminder per newly overdue task.

Each scan:
1. Opens a fresh session and selects eligible tasks (overdue, not
   completed, reminder not yet sent)
2. Publishes a persistent reminder message per task
3. Marks each published task ``reminder_sent`` with a version-guarded
   update, skipping rows another writer changed in the meantime

Publishing happens before marking, so a crash in between leads to a
repeated reminder on the next scan, never to a lost one.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Protocol

from reminder_service.core.settings import get_reminder_settings
from reminder_service.features.reminders.schemas import ReminderMessage
from reminder_service.features.tasks.repository import MarkSentResult, TaskRepository
from reminder_service.infra.database import get_async_session
from reminder_service.infra.messaging.publisher import ReminderPublisher
from reminder_service.infra.metrics.prometheus import (
    reminder_mark_conflicts_total,
    reminder_publish_failures_total,
    reminder_scan_duration_seconds,
    reminder_scans_total,
    reminders_published_total,
)
from reminder_service.utils.cancellation import OperationCancelledError

if TYPE_CHECKING:
    from collections.abc import Callable
    from contextlib import AbstractAsyncContextManager

    from sqlalchemy.ext.asyncio import AsyncSession

    from reminder_service.features.tasks.models import TaskRef
    from reminder_service.utils.cancellation import CancellationToken

logger = logging.getLogger(__name__)


class Publisher(Protocol):
    async def publish(self, message: ReminderMessage) -> None: ...


@dataclass(frozen=True)
class ScanResult:
    """Counts from one scan pass."""

    found: int = 0
    published: int = 0
    marked: int = 0
    conflicts: int = 0
    publish_failed: bool = False

    @property
    def is_noop(self) -> bool:
        return self.found == 0


class DueDateScanner:
    """Polls the task store and dispatches reminders for overdue tasks.

    Attributes:
        interval_seconds: Seconds to wait between scans
    """

    def __init__(
        self,
        *,
        interval_seconds: float | None = None,
        session_factory: Callable[[], AbstractAsyncContextManager[AsyncSession]] | None = None,
        publisher_factory: Callable[[], AbstractAsyncContextManager[Publisher]] | None = None,
        repository: TaskRepository | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if interval_seconds is None:
            interval_seconds = get_reminder_settings().scan_interval_seconds
        self.interval_seconds = interval_seconds
        self._session_factory = session_factory or get_async_session
        self._publisher_factory = publisher_factory or ReminderPublisher
        self._repository = repository or TaskRepository()
        self._clock = clock or (lambda: datetime.now(UTC))

    async def scan_and_dispatch(self, now: datetime | None = None) -> ScanResult:
        """Run a single scan pass.

        Args:
            now: Reference time for eligibility and the message timestamp.
                Defaults to the scanner's clock.

        Returns:
            ScanResult with the number of tasks found, published, marked
            and skipped on conflict.

        Raises:
            BrokerUnavailableError: If the publisher cannot be opened. No task
                is marked in that case.
        """
        now = now or self._clock()
        started = time.perf_counter()

        async with self._session_factory() as session:
            eligible = await self._repository.find_eligible_for_reminder(session, now)
            if not eligible:
                logger.debug("No overdue tasks found")
                reminder_scans_total.labels(outcome="noop").inc()
                reminder_scan_duration_seconds.observe(time.perf_counter() - started)
                return ScanResult()

            logger.info(
                "Found overdue tasks needing reminders",
                extra={"count": len(eligible)},
            )

            published, publish_failed = await self._publish_all(eligible, now)

            marked = 0
            conflicts = 0
            for task in published:
                outcome = await self._repository.mark_reminder_sent(
                    session, task.id, task.row_version, now=now
                )
                if outcome is MarkSentResult.UPDATED:
                    marked += 1
                    continue
                conflicts += 1
                reminder_mark_conflicts_total.inc()
                logger.warning(
                    "Task changed concurrently, reminder-sent flag not updated",
                    extra={"task_id": task.id, "expected_version": task.row_version},
                )

            await session.commit()

        result = ScanResult(
            found=len(eligible),
            published=len(published),
            marked=marked,
            conflicts=conflicts,
            publish_failed=publish_failed,
        )
        reminder_scans_total.labels(outcome="partial" if publish_failed else "dispatched").inc()
        reminder_scan_duration_seconds.observe(time.perf_counter() - started)
        logger.info(
            "Reminder scan complete",
            extra={
                "found": result.found,
                "published": result.published,
                "marked": result.marked,
                "conflicts": result.conflicts,
                "publish_failed": result.publish_failed,
            },
        )
        return result

    async def _publish_all(
        self, eligible: list[TaskRef], now: datetime
    ) -> tuple[list[TaskRef], bool]:
        """Publish a reminder per task, stopping at the first failure.

        Tasks after a failed publish stay eligible for the next scan.
        """
        published: list[TaskRef] = []
        async with self._publisher_factory() as publisher:
            for task in eligible:
                message = ReminderMessage.from_task(task, sent_at=now)
                try:
                    await publisher.publish(message)
                except Exception:
                    reminder_publish_failures_total.inc()
                    logger.exception(
                        "Failed to publish reminder, leaving remaining tasks for next scan",
                        extra={
                            "task_id": task.id,
                            "remaining": len(eligible) - len(published),
                        },
                    )
                    return published, True

                published.append(task)
                reminders_published_total.inc()
                logger.info(
                    "Published reminder for task",
                    extra={"task_id": task.id, "title": task.title},
                )
        return published, False

    async def run(self, token: CancellationToken) -> None:
        """Scan from start until ``token`` is cancelled.

        Failures of a single scan are logged and the loop carries on.
        """
        logger.info(
            "Due-date scanner started",
            extra={"interval_seconds": self.interval_seconds},
        )

        while not token.is_cancelled:
            try:
                await token.wait_for(self.scan_and_dispatch())
            except OperationCancelledError:
                break
            except Exception:
                reminder_scans_total.labels(outcome="failed").inc()
                logger.exception("Error while scanning for overdue tasks")

            if await token.sleep(self.interval_seconds):
                break

        logger.info("Due-date scanner stopped")
