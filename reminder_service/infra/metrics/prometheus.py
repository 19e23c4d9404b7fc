"""Prometheus metrics for the reminder pipeline."""

from __future__ import annotations

import logging

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

logger = logging.getLogger(__name__)

# Custom registry so only pipeline metrics are exported
REGISTRY = CollectorRegistry()

SCAN_DURATION_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

# Due-date scanner
reminder_scans_total = Counter(
    "reminder_scans_total",
    "Due-date scans by outcome",
    ["outcome"],  # noop, dispatched, partial, failed
    registry=REGISTRY,
)

reminder_scan_duration_seconds = Histogram(
    "reminder_scan_duration_seconds",
    "Duration of a due-date scan in seconds",
    buckets=SCAN_DURATION_BUCKETS,
    registry=REGISTRY,
)

reminders_published_total = Counter(
    "reminders_published_total",
    "Reminder messages published to the queue",
    registry=REGISTRY,
)

reminder_publish_failures_total = Counter(
    "reminder_publish_failures_total",
    "Reminder messages that failed to publish",
    registry=REGISTRY,
)

reminder_mark_conflicts_total = Counter(
    "reminder_mark_conflicts_total",
    "Tasks skipped because their version changed before being marked sent",
    registry=REGISTRY,
)

# Reminder consumer
reminder_deliveries_total = Counter(
    "reminder_deliveries_total",
    "Reminder deliveries handled by consumers, by outcome",
    ["outcome"],  # acked, nacked
    registry=REGISTRY,
)

reminder_consumer_connect_failures_total = Counter(
    "reminder_consumer_connect_failures_total",
    "Failed consumer connection attempts",
    registry=REGISTRY,
)

reminder_consumers_connected = Gauge(
    "reminder_consumers_connected",
    "Consumers currently connected and consuming",
    registry=REGISTRY,
)


def start_metrics_server(port: int) -> None:
    """Serve REGISTRY over HTTP on ``port`` in a daemon thread."""
    start_http_server(port, registry=REGISTRY)
    logger.info("Prometheus metrics server started", extra={"port": port})
