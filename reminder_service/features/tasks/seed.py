"""Default tags and sample tasks for a local task store.

Seeding is idempotent: rows are matched by primary key (and tags also by
name) and only missing ones are inserted.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import func, select, text

from reminder_service.features.tasks.models import Tag, Task, TaskPriority, task_tags

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

SEED_CREATED_AT = datetime(2026, 1, 1, tzinfo=UTC)

DEFAULT_TAGS: dict[int, str] = {
    1: "Urgent",
    2: "Bug",
    3: "Feature",
    4: "Improvement",
    5: "Documentation",
    6: "Research",
    7: "Testing",
    8: "DevOps",
}


@dataclass(frozen=True)
class SampleTask:
    id: int
    title: str
    description: str
    due_date: datetime
    priority: TaskPriority
    user_full_name: str
    user_telephone: str
    user_email: str
    tag_ids: tuple[int, ...]


def _due(month: int, day: int, hour: int) -> datetime:
    return datetime(2026, month, day, hour, tzinfo=UTC)


SAMPLE_TASKS: tuple[SampleTask, ...] = (
    # Overdue
    SampleTask(
        100,
        "Fix login page validation bug",
        "Email field accepts invalid formats on the login page.",
        _due(1, 5, 10),
        TaskPriority.HIGH,
        "Dana Cohen",
        "050-1234567",
        "dana.cohen@example.com",
        (2, 1),
    ),
    SampleTask(
        101,
        "Write unit tests for TaskService",
        "Cover create, update and delete paths of the task service.",
        _due(1, 12, 14),
        TaskPriority.MEDIUM,
        "Yossi Levi",
        "052-9876543",
        "yossi.levi@example.com",
        (7,),
    ),
    SampleTask(
        102,
        "Update API documentation",
        "Document the new task and tag endpoints.",
        _due(1, 18, 12),
        TaskPriority.LOW,
        "Noa Shapira",
        "054-5551234",
        "noa.shapira@example.com",
        (5,),
    ),
    SampleTask(
        103,
        "Investigate slow database queries",
        "Task list endpoint takes over two seconds with many tags.",
        _due(1, 22, 9),
        TaskPriority.CRITICAL,
        "Amit Peretz",
        "053-7778899",
        "amit.peretz@example.com",
        (2, 6),
    ),
    SampleTask(
        104,
        "Set up CI/CD pipeline",
        "Build, test and deploy on every push to main.",
        _due(1, 28, 16),
        TaskPriority.HIGH,
        "Shira Ben-David",
        "050-3334455",
        "shira.bd@example.com",
        (8,),
    ),
    # Upcoming
    SampleTask(
        105,
        "Implement task reminder notifications",
        "Notify assignees when their tasks become overdue.",
        _due(3, 3, 9),
        TaskPriority.HIGH,
        "Tomer Azulay",
        "052-1112233",
        "tomer.az@example.com",
        (3, 4),
    ),
    SampleTask(
        106,
        "Add dark mode support to frontend",
        "Respect the system colour scheme preference.",
        _due(3, 10, 12),
        TaskPriority.LOW,
        "Maya Goldstein",
        "054-6667788",
        "maya.gold@example.com",
        (3,),
    ),
    SampleTask(
        107,
        "Create user dashboard with task statistics",
        "Show open, completed and overdue counts per user.",
        _due(3, 15, 11),
        TaskPriority.MEDIUM,
        "Eyal Mizrachi",
        "050-8889900",
        "eyal.m@example.com",
        (3, 4),
    ),
    SampleTask(
        108,
        "Migrate database to PostgreSQL",
        "Move the task store off the development database.",
        _due(3, 22, 15),
        TaskPriority.CRITICAL,
        "Lior Katz",
        "053-2223344",
        "lior.katz@example.com",
        (8, 6),
    ),
    SampleTask(
        109,
        "Add export tasks to CSV feature",
        "Let users download their task list as CSV.",
        _due(3, 28, 10),
        TaskPriority.MEDIUM,
        "Rotem Haim",
        "052-4445566",
        "rotem.h@example.com",
        (3,),
    ),
)


@dataclass(frozen=True)
class SeedResult:
    tags_created: int
    tasks_created: int


async def seed_database(session: AsyncSession) -> SeedResult:
    """Insert the default tags and sample tasks that are missing.

    The caller owns the transaction and must commit.
    """
    existing_tag_ids = set((await session.scalars(select(Tag.id))).all())
    existing_tag_names = set((await session.scalars(select(Tag.name))).all())
    tags_created = 0
    for tag_id, name in DEFAULT_TAGS.items():
        if tag_id in existing_tag_ids or name in existing_tag_names:
            continue
        session.add(Tag(id=tag_id, name=name))
        tags_created += 1
    await session.flush()

    existing_task_ids = set((await session.scalars(select(Task.id))).all())
    known_tag_ids = set((await session.scalars(select(Tag.id))).all())
    tasks_created = 0
    for sample in SAMPLE_TASKS:
        if sample.id in existing_task_ids:
            continue
        session.add(
            Task(
                id=sample.id,
                title=sample.title,
                description=sample.description,
                due_date=sample.due_date,
                priority=int(sample.priority),
                user_full_name=sample.user_full_name,
                user_telephone=sample.user_telephone,
                user_email=sample.user_email,
                created_at=SEED_CREATED_AT,
                updated_at=SEED_CREATED_AT,
            )
        )
        await session.flush()
        links = [
            {"task_id": sample.id, "tag_id": tag_id}
            for tag_id in sample.tag_ids
            if tag_id in known_tag_ids
        ]
        if links:
            await session.execute(task_tags.insert(), links)
        tasks_created += 1

    if session.get_bind().dialect.name == "postgresql":
        await _advance_sequences(session)

    logger.info(
        "Seed data applied",
        extra={"tags_created": tags_created, "tasks_created": tasks_created},
    )
    return SeedResult(tags_created=tags_created, tasks_created=tasks_created)


async def _advance_sequences(session: AsyncSession) -> None:
    # Explicit primary keys leave the serial sequences behind.
    for table in ("tasks", "tags"):
        max_id = await session.scalar(text(f"SELECT COALESCE(MAX(id), 1) FROM {table}"))
        await session.execute(
            text("SELECT setval(pg_get_serial_sequence(:table, 'id'), :value)"),
            {"table": table, "value": max_id},
        )


async def count_tasks(session: AsyncSession) -> int:
    return int(await session.scalar(select(func.count()).select_from(Task)) or 0)
