"""Reminder pipeline settings: scanner cadence, consumer pool, shutdown."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ReminderSettings(BaseSettings):
    """Due-date scanner and reminder consumer configuration.

    Environment variables use REMINDER_ prefix.
    Example: REMINDER_SCAN_INTERVAL_SECONDS=30, REMINDER_CONSUMER_INSTANCES=2
    """

    # ─────────────────────────────────────────────────────
    # Due-date scanner
    # ─────────────────────────────────────────────────────
    scanner_enabled: bool = Field(
        default=True,
        description="Run the due-date scanner in this process.",
    )
    scan_interval_seconds: float = Field(
        default=60.0,
        gt=0,
        le=86400.0,
        description="Seconds to wait between due-date scans.",
    )

    # ─────────────────────────────────────────────────────
    # Reminder consumer
    # ─────────────────────────────────────────────────────
    consumer_enabled: bool = Field(
        default=True,
        description="Run reminder consumers in this process.",
    )
    consumer_instances: int = Field(
        default=1,
        ge=1,
        le=32,
        description="Number of independent consumers sharing the reminder queue.",
    )
    reconnect_delay_seconds: float = Field(
        default=5.0,
        gt=0,
        le=600.0,
        description="Fixed backoff between broker connection attempts.",
    )

    # ─────────────────────────────────────────────────────
    # Host lifecycle
    # ─────────────────────────────────────────────────────
    shutdown_timeout_seconds: float = Field(
        default=15.0,
        gt=0,
        le=300.0,
        description="How long the host waits for workers to stop before cancelling them.",
    )
    metrics_port: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Expose Prometheus metrics over HTTP on this port when set.",
    )

    model_config = SettingsConfigDict(
        env_prefix="REMINDER_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )
