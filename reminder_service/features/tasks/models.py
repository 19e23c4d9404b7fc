"""SQLAlchemy models for tasks and tags."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import IntEnum

from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reminder_service.core.database import (
    Base,
    IntegerPKMixin,
    TimestampMixin,
    UTCDateTime,
    ensure_utc,
)


class TaskPriority(IntEnum):
    """Task priority, stored as its integer value."""

    LOW = 0
    MEDIUM = 1
    HIGH = 2
    CRITICAL = 3


# Many-to-many association table for tasks <-> tags
task_tags = Table(
    "task_tags",
    Base.metadata,
    Column(
        "task_id",
        ForeignKey("tasks.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id",
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
    ),
)


class Task(Base, IntegerPKMixin, TimestampMixin):
    """Task assigned to a person, with a due date and reminder state.

    ``row_version`` is the optimistic concurrency token. The ORM bumps it
    on every flush that updates the row; bulk statements must bump it
    explicitly (see ``TaskRepository.mark_reminder_sent``).
    """

    __tablename__ = "tasks"

    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(2000), nullable=True)
    due_date: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )
    priority: Mapped[int] = mapped_column(
        Integer,
        default=TaskPriority.MEDIUM,
        nullable=False,
        comment="0=Low, 1=Medium, 2=High, 3=Critical",
    )
    user_full_name: Mapped[str] = mapped_column(String(150), nullable=False)
    user_telephone: Mapped[str] = mapped_column(String(20), nullable=False)
    user_email: Mapped[str] = mapped_column(String(254), nullable=False)
    is_completed: Mapped[bool] = mapped_column(Boolean(), default=False, nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    reminder_sent: Mapped[bool] = mapped_column(
        Boolean(),
        default=False,
        nullable=False,
        comment="Set once the due-date reminder has been published",
    )
    row_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Optimistic concurrency token, changed on every write",
    )

    tags: Mapped[list[Tag]] = relationship(
        "Tag",
        secondary=task_tags,
        back_populates="tasks",
        lazy="selectin",
    )

    __mapper_args__ = {"version_id_col": row_version}

    def __repr__(self) -> str:
        return f"<Task(id={self.id}, title={self.title!r}, due_date={self.due_date})>"


class Tag(Base, IntegerPKMixin):
    """Label that can be attached to many tasks."""

    __tablename__ = "tags"

    name: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)

    tasks: Mapped[list[Task]] = relationship(
        "Task",
        secondary=task_tags,
        back_populates="tags",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, name={self.name!r})>"


@dataclass(frozen=True, slots=True)
class TaskRef:
    """Read-only snapshot of an eligible task, as handed to the scanner."""

    id: int
    title: str
    due_date: datetime
    user_full_name: str
    user_email: str
    row_version: int

    @classmethod
    def from_task(cls, task: Task) -> TaskRef:
        return cls(
            id=task.id,
            title=task.title,
            due_date=ensure_utc(task.due_date),
            user_full_name=task.user_full_name,
            user_email=task.user_email,
            row_version=task.row_version,
        )
