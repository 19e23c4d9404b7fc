"""Prometheus metrics."""

from reminder_service.infra.metrics.prometheus import REGISTRY, start_metrics_server

__all__ = ["REGISTRY", "start_metrics_server"]
