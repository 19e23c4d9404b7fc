"""Unit tests for the worker host lifecycle."""
from __future__ import annotations

import asyncio
import signal

import pytest

from reminder_service.core.settings import ReminderSettings
from reminder_service.workers.host import WorkerHost, run_workers


class StubWorker:
    """Worker that runs until cancelled, optionally failing or ignoring the token."""

    def __init__(self, name: str, *, fail: bool = False, stubborn: bool = False, exit_after=None):
        self.name = name
        self.fail = fail
        self.stubborn = stubborn
        self.exit_after = exit_after
        self.started = False
        self.stopped = False

    async def run(self, token):
        self.started = True
        if self.fail:
            raise RuntimeError(f"{self.name} crashed")
        if self.stubborn:
            await asyncio.sleep(60)
        if self.exit_after is not None:
            await asyncio.sleep(self.exit_after)
        else:
            await token.wait()
        self.stopped = True
        return True


@pytest.mark.unit
class TestWorkerHost:
    """Test suite for WorkerHost."""

    @pytest.mark.asyncio
    async def test_runs_until_cancelled(self):
        """Test that every worker starts and stops with the shared token."""
        scanner = StubWorker("due-date-scanner")
        consumers = [StubWorker("reminder-consumer-1"), StubWorker("reminder-consumer-2")]
        host = WorkerHost(scanner=scanner, consumers=consumers)
        asyncio.get_running_loop().call_later(0.05, host.token.cancel)

        await asyncio.wait_for(host.run(), timeout=5)

        assert all(w.started and w.stopped for w in [scanner, *consumers])

    @pytest.mark.asyncio
    async def test_crashed_worker_does_not_stop_others(self, caplog):
        """Test that one failing worker is logged while the rest keep running."""
        healthy = StubWorker("reminder-consumer-1")
        broken = StubWorker("reminder-consumer-2", fail=True)
        host = WorkerHost(run_scanner=False, consumers=[healthy, broken])

        run = asyncio.create_task(host.run())
        await asyncio.sleep(0.05)

        assert not run.done()
        assert "Worker exited with an error" in caplog.text

        host.token.cancel()
        await asyncio.wait_for(run, timeout=5)
        assert healthy.stopped

    @pytest.mark.asyncio
    async def test_stops_when_all_workers_exit(self):
        """Test that the host returns once no worker is left running."""
        host = WorkerHost(
            run_scanner=False,
            consumers=[StubWorker("reminder-consumer-1", exit_after=0.01)],
        )

        await asyncio.wait_for(host.run(), timeout=5)

        assert host.token.is_cancelled

    @pytest.mark.asyncio
    async def test_stubborn_worker_cancelled_after_timeout(self, caplog):
        """Test that workers ignoring the token are cancelled after the timeout."""
        stubborn = StubWorker("reminder-consumer-1", stubborn=True)
        host = WorkerHost(run_scanner=False, consumers=[stubborn], shutdown_timeout=0.05)
        asyncio.get_running_loop().call_later(0.01, host.token.cancel)

        await asyncio.wait_for(host.run(), timeout=5)

        assert stubborn.stopped is False
        assert "Worker did not stop in time, cancelling" in caplog.text

    @pytest.mark.asyncio
    async def test_no_workers(self, caplog):
        """Test that a host with nothing enabled returns immediately."""
        host = WorkerHost(run_scanner=False, consumer_count=0)

        await asyncio.wait_for(host.run(), timeout=1)

        assert "No workers enabled" in caplog.text

    def test_from_settings(self):
        """Test that settings and overrides shape the host."""
        settings = ReminderSettings(
            consumer_enabled=False,
            consumer_instances=4,
            shutdown_timeout_seconds=3.0,
        )

        host = WorkerHost.from_settings(settings)
        assert host.consumer_count == 0
        assert host.shutdown_timeout == 3.0

        host = WorkerHost.from_settings(settings, consumer_count=2, run_scanner=False)
        assert host.consumer_count == 2
        assert host.run_scanner is False

    def test_build_workers_names_consumers(self):
        """Test that consumers are numbered from one."""
        host = WorkerHost(run_scanner=False, consumer_count=3)

        workers = host.build_workers()
        for _, coro in workers:
            coro.close()

        assert [name for name, _ in workers] == [
            "reminder-consumer-1",
            "reminder-consumer-2",
            "reminder-consumer-3",
        ]

    def test_signal_cancels_token(self):
        """Test that SIGTERM handling cancels the shared token."""
        host = WorkerHost(run_scanner=False, consumer_count=0)

        host._on_signal(signal.SIGTERM)

        assert host.token.is_cancelled


@pytest.mark.unit
class TestRunWorkers:
    """Test suite for run_workers."""

    @pytest.mark.asyncio
    async def test_overrides_forwarded(self, monkeypatch):
        """Test that CLI overrides replace settings values."""
        captured = {}

        async def fake_run(self):
            captured["run_scanner"] = self.run_scanner
            captured["consumer_count"] = self.consumer_count

        monkeypatch.setattr(WorkerHost, "run", fake_run)
        monkeypatch.setattr(WorkerHost, "install_signal_handlers", lambda self: None)

        await run_workers(run_scanner=False, consumers=3)

        assert captured == {"run_scanner": False, "consumer_count": 3}

    @pytest.mark.asyncio
    async def test_consumer_disabled(self, monkeypatch):
        """Test that --no-consumer yields zero consumers."""
        captured = {}

        async def fake_run(self):
            captured["consumer_count"] = self.consumer_count

        monkeypatch.setattr(WorkerHost, "run", fake_run)
        monkeypatch.setattr(WorkerHost, "install_signal_handlers", lambda self: None)

        await run_workers(run_consumer=False, consumers=5)

        assert captured["consumer_count"] == 0

    @pytest.mark.asyncio
    async def test_metrics_server_started(self, monkeypatch):
        """Test that a configured metrics port starts the exporter."""
        ports = []
        monkeypatch.setenv("REMINDER_METRICS_PORT", "9464")
        monkeypatch.setattr("reminder_service.workers.host.start_metrics_server", ports.append)

        async def fake_run(self):
            return None

        monkeypatch.setattr(WorkerHost, "run", fake_run)
        monkeypatch.setattr(WorkerHost, "install_signal_handlers", lambda self: None)

        await run_workers()

        assert ports == [9464]
