"""Unit tests for the JSON formatter and queue-based logging setup."""
from __future__ import annotations

import json
import logging
import sys

import pytest

from reminder_service.infra.logging import JSONFormatter, configure_logging, shutdown


def _record(msg: str, *args, level: int = logging.INFO, **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="reminder_service.test",
        level=level,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def restore_root_logger():
    """Undo configure_logging side effects on the root logger."""
    root = logging.getLogger()
    level = root.level
    handlers = list(root.handlers)
    yield
    shutdown()
    root.setLevel(level)
    root.handlers[:] = handlers
    logging.captureWarnings(False)


@pytest.mark.unit
class TestJSONFormatter:
    """Test suite for JSONFormatter."""

    def test_basic_fields(self):
        """Test that level, logger, message and timestamp are emitted."""
        formatter = JSONFormatter(static={"service": "reminder-service"})

        data = json.loads(formatter.format(_record("Task due: %s", "Deploy")))

        assert data["level"] == "INFO"
        assert data["logger"] == "reminder_service.test"
        assert data["message"] == "Task due: Deploy"
        assert data["service"] == "reminder-service"
        assert data["timestamp"].endswith("Z")

    def test_extra_fields_merged(self):
        """Test that extra={...} values appear at the top level."""
        formatter = JSONFormatter()

        data = json.loads(formatter.format(_record("Reminder scan complete", found=3, marked=2)))

        assert data["found"] == 3
        assert data["marked"] == 2
        assert "args" not in data
        assert "msg" not in data

    def test_exception_single_line(self):
        """Test that tracebacks are kept on one line."""
        formatter = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            record = _record("failed", level=logging.ERROR)
            record.exc_info = sys.exc_info()

        output = formatter.format(record)

        assert "\n" not in output
        assert "ValueError: boom" in json.loads(output)["exception"]

    def test_non_serializable_extra(self):
        """Test that values json cannot encode are stringified."""
        formatter = JSONFormatter()

        data = json.loads(formatter.format(_record("x", when={1, 2})))

        assert isinstance(data["when"], str)

    def test_process_and_thread_info(self):
        """Test optional process and thread fields."""
        formatter = JSONFormatter(include_process_info=True, include_thread_info=True)

        data = json.loads(formatter.format(_record("x")))

        assert "process_id" in data
        assert "thread_name" in data


@pytest.mark.unit
class TestConfigureLogging:
    """Test suite for configure_logging."""

    def test_writes_jsonl_file(self, tmp_path, restore_root_logger):
        """Test that records reach the rotating file as JSON lines."""
        log_file = tmp_path / "logs" / "reminders.jsonl"
        configure_logging(
            log_level="INFO",
            json_logs=True,
            console_enabled=False,
            file_path=log_file,
            service_name="reminder-service-test",
        )

        logging.getLogger("reminder_service.test").warning(
            "Task due: %s", "Deploy", extra={"task_id": 42}
        )
        logging.getLogger("reminder_service.test").debug("filtered out")
        shutdown()

        lines = log_file.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 1
        data = json.loads(lines[0])
        assert data["message"] == "Task due: Deploy"
        assert data["task_id"] == 42
        assert data["service"] == "reminder-service-test"

    def test_quiet_loggers(self, restore_root_logger):
        """Test that quiet_loggers raises third-party logger levels."""
        configure_logging(
            console_enabled=False,
            quiet_loggers={"aio_pika": "WARNING", "aiormq": "error"},
        )

        assert logging.getLogger("aio_pika").level == logging.WARNING
        assert logging.getLogger("aiormq").level == logging.ERROR

    def test_reconfigure_does_not_duplicate(self, tmp_path, restore_root_logger):
        """Test that configuring twice leaves one queue handler on root."""
        from logging.handlers import QueueHandler

        configure_logging(console_enabled=True, file_path=tmp_path / "a.log")
        configure_logging(console_enabled=True, file_path=tmp_path / "a.log")

        queue_handlers = [h for h in logging.getLogger().handlers if isinstance(h, QueueHandler)]
        assert len(queue_handlers) == 1
