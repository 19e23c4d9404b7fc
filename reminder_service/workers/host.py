"""Worker host running the due-date scanner and reminder consumers.

All workers share one ``CancellationToken``; SIGINT/SIGTERM cancel it and
the host then waits (bounded by ``shutdown_timeout_seconds``) for every
worker to finish. A worker that crashes is logged and does not bring the
others down.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from reminder_service.core.settings import get_reminder_settings
from reminder_service.features.reminders.consumer import ReminderConsumer
from reminder_service.features.reminders.scanner import DueDateScanner
from reminder_service.infra.database import close_database
from reminder_service.infra.metrics.prometheus import start_metrics_server
from reminder_service.utils.cancellation import CancellationToken

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from reminder_service.core.settings import ReminderSettings

logger = logging.getLogger(__name__)


@dataclass
class WorkerHost:
    """Owns the worker tasks and their shared cancellation token."""

    run_scanner: bool = True
    consumer_count: int = 1
    shutdown_timeout: float = 15.0
    token: CancellationToken = field(default_factory=CancellationToken)
    scanner: DueDateScanner | None = None
    consumers: list[ReminderConsumer] = field(default_factory=list)

    @classmethod
    def from_settings(cls, settings: ReminderSettings | None = None, **overrides: Any) -> WorkerHost:
        settings = settings or get_reminder_settings()
        options: dict[str, Any] = {
            "run_scanner": settings.scanner_enabled,
            "consumer_count": settings.consumer_instances if settings.consumer_enabled else 0,
            "shutdown_timeout": settings.shutdown_timeout_seconds,
        }
        options.update(overrides)
        return cls(**options)

    def build_workers(self) -> list[tuple[str, Coroutine[Any, Any, Any]]]:
        workers: list[tuple[str, Coroutine[Any, Any, Any]]] = []
        if self.run_scanner:
            self.scanner = self.scanner or DueDateScanner()
            workers.append(("due-date-scanner", self.scanner.run(self.token)))

        if not self.consumers:
            self.consumers = [
                ReminderConsumer(name=f"reminder-consumer-{i}")
                for i in range(1, self.consumer_count + 1)
            ]
        workers.extend((consumer.name, consumer.run(self.token)) for consumer in self.consumers)
        return workers

    def install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self._on_signal, sig)
            except (NotImplementedError, RuntimeError):
                # Not supported on this platform or not in the main thread
                logger.debug("Signal handler not installed", extra={"signal": sig.name})

    def _on_signal(self, sig: signal.Signals) -> None:
        logger.info("Signal received, shutting down workers", extra={"signal": sig.name})
        self.token.cancel()

    async def run(self) -> None:
        """Run all workers until the token is cancelled and they have stopped."""
        workers = self.build_workers()
        if not workers:
            logger.warning("No workers enabled, nothing to run")
            return

        tasks = {asyncio.create_task(coro, name=name): name for name, coro in workers}
        for task in tasks:
            task.add_done_callback(lambda t, tasks=tasks: self._on_worker_exit(t, tasks))
        logger.info("Worker host started", extra={"workers": sorted(tasks.values())})

        try:
            await self.token.wait()
        finally:
            self.token.cancel()
            await self._drain(tasks)

        logger.info("Worker host stopped")

    def _on_worker_exit(self, task: asyncio.Task[Any], tasks: dict[asyncio.Task[Any], str]) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error(
                "Worker exited with an error",
                extra={"worker": tasks[task]},
                exc_info=task.exception(),
            )
        if all(t.done() for t in tasks):
            self.token.cancel()

    async def _drain(self, tasks: dict[asyncio.Task[Any], str]) -> None:
        _, pending = await asyncio.wait(tasks, timeout=self.shutdown_timeout)
        for task in pending:
            logger.warning(
                "Worker did not stop in time, cancelling",
                extra={"worker": tasks[task], "timeout": self.shutdown_timeout},
            )
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task


async def run_workers(
    *,
    run_scanner: bool | None = None,
    run_consumer: bool | None = None,
    consumers: int | None = None,
) -> None:
    """Entry point used by the CLI ``run`` command."""
    settings = get_reminder_settings()
    overrides: dict[str, Any] = {}
    if run_scanner is not None:
        overrides["run_scanner"] = run_scanner
    count = consumers if consumers is not None else settings.consumer_instances
    if run_consumer is False or (run_consumer is None and not settings.consumer_enabled):
        count = 0
    overrides["consumer_count"] = count

    if settings.metrics_port:
        start_metrics_server(settings.metrics_port)

    host = WorkerHost.from_settings(settings, **overrides)
    host.install_signal_handlers()
    try:
        await host.run()
    finally:
        await close_database()
