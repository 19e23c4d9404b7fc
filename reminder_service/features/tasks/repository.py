"""Task store queries used by the reminder pipeline.

Sessions are passed explicitly; the repository never commits.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from enum import StrEnum
from typing import TYPE_CHECKING

from sqlalchemy import select, update
from sqlalchemy.orm import noload

from reminder_service.core.database import ensure_utc
from reminder_service.features.tasks.models import Task, TaskRef

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)


class MarkSentResult(StrEnum):
    """Outcome of a conditional reminder-sent update."""

    UPDATED = "updated"
    CONFLICT = "conflict"


class TaskRepository:
    """Reads eligible tasks and records sent reminders."""

    async def find_eligible_for_reminder(
        self,
        session: AsyncSession,
        now: datetime,
        *,
        limit: int | None = None,
    ) -> list[TaskRef]:
        """Find overdue tasks that still need a reminder.

        A task is eligible when its due date is strictly before ``now``,
        it is not completed and its reminder has not been sent.

        Args:
            session: Database session
            now: Reference time; naive values are taken as UTC
            limit: Optional cap on the number of tasks returned

        Returns:
            Snapshots ordered by due date (oldest first)
        """
        now = ensure_utc(now)
        stmt = (
            select(Task)
            .options(noload(Task.tags))
            .where(
                Task.due_date < now,
                Task.is_completed == False,  # noqa: E712
                Task.reminder_sent == False,  # noqa: E712
            )
            .order_by(Task.due_date.asc(), Task.id.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await session.execute(stmt)
        return [TaskRef.from_task(task) for task in result.scalars().all()]

    async def mark_reminder_sent(
        self,
        session: AsyncSession,
        task_id: int,
        expected_version: int,
        *,
        now: datetime | None = None,
    ) -> MarkSentResult:
        """Set ``reminder_sent`` if the row still carries ``expected_version``.

        The update is a single conditional statement; a row deleted or
        modified since it was read matches nothing and is reported as a
        conflict. The version token is bumped on success.
        """
        stmt = (
            update(Task)
            .where(Task.id == task_id, Task.row_version == expected_version)
            .values(
                reminder_sent=True,
                row_version=Task.row_version + 1,
                updated_at=ensure_utc(now or datetime.now(UTC)),
            )
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)

        if result.rowcount == 1:
            return MarkSentResult.UPDATED

        logger.debug(
            "Reminder-sent update matched no row",
            extra={"task_id": task_id, "expected_version": expected_version},
        )
        return MarkSentResult.CONFLICT
