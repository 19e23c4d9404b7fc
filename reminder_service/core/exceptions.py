"""Custom exception classes for the reminder pipeline."""

from __future__ import annotations

from typing import Any


class ReminderServiceError(Exception):
    """Base reminder service exception.

    All custom exceptions should inherit from this class.

    Attributes:
        message: Human-readable error message.
        details: Additional context about the error (logged as ``extra``).
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class MessageDecodeError(ReminderServiceError):
    """A queue delivery body is not a valid reminder message.

    Raised for undecodable bytes, invalid JSON, non-object JSON and
    missing or mistyped fields. The consumer negatively acknowledges the
    delivery with requeue.
    """

    def __init__(self, reason: str, body: bytes | None = None) -> None:
        details: dict[str, Any] = {"reason": reason}
        if body is not None:
            details["body_preview"] = body[:200].decode("utf-8", errors="replace")
        super().__init__("Could not decode reminder message", details=details)
        self.reason = reason


class BrokerUnavailableError(ReminderServiceError):
    """RabbitMQ is disabled or could not be reached."""

    def __init__(self, message: str = "RabbitMQ is unavailable", url: str | None = None) -> None:
        super().__init__(message, details={"url": url} if url else None)
        self.url = url


class ConnectionLostError(ReminderServiceError):
    """The broker stopped delivering to a consumer; it reconnects."""

    def __init__(
        self, message: str = "RabbitMQ delivery stream closed", queue: str | None = None
    ) -> None:
        super().__init__(message, details={"queue": queue} if queue else None)
        self.queue = queue
