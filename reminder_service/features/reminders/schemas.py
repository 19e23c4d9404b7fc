"""Reminder message contract shared by the scanner and the consumer.

On the wire a reminder is a flat UTF-8 JSON object::

    {"TaskId": 100, "Title": "Fix login page validation bug",
     "DueDate": "2026-01-05T10:00:00Z", "UserFullName": "Dana Cohen",
     "UserEmail": "dana.cohen@example.com", "SentAt": "2026-01-06T08:00:00Z"}

PascalCase keys keep the queue compatible with the .NET producer of the
task-management system. Decoding also accepts snake_case keys.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from reminder_service.core.exceptions import MessageDecodeError
from reminder_service.features.tasks.models import TaskRef

CONTENT_TYPE = "application/json"
CONTENT_ENCODING = "utf-8"


class ReminderMessage(BaseModel):
    """Immutable reminder for a single overdue task."""

    # Strict: wire values must already carry the field type.
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore", strict=True)

    task_id: int = Field(..., alias="TaskId")
    title: str = Field(..., alias="Title")
    due_date: datetime = Field(..., alias="DueDate")
    user_full_name: str = Field(..., alias="UserFullName")
    user_email: str = Field(..., alias="UserEmail")
    sent_at: datetime = Field(..., alias="SentAt")

    @field_validator("due_date", "sent_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC and normalize aware ones to UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    @classmethod
    def from_task(cls, task: TaskRef, sent_at: datetime) -> ReminderMessage:
        return cls(
            task_id=task.id,
            title=task.title,
            due_date=task.due_date,
            user_full_name=task.user_full_name,
            user_email=task.user_email,
            sent_at=sent_at,
        )

    def to_bytes(self) -> bytes:
        """Serialize to the UTF-8 JSON wire format."""
        return self.model_dump_json(by_alias=True).encode(CONTENT_ENCODING)

    @classmethod
    def from_bytes(cls, body: bytes) -> ReminderMessage:
        """Parse a delivery body.

        Raises:
            MessageDecodeError: If the body is not UTF-8, not a JSON object,
                or lacks a required field.
        """
        try:
            text = body.decode(CONTENT_ENCODING)
        except UnicodeDecodeError as e:
            raise MessageDecodeError(f"body is not valid UTF-8: {e.reason}", body) from e

        try:
            return cls.model_validate_json(text)
        except ValidationError as e:
            errors = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
                for err in e.errors()
            )
            raise MessageDecodeError(errors, body) from e
