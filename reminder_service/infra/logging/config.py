"""Logging configuration setup.

Provides logging configuration using:
- dictConfig for the root logger and formatters
- QueueHandler + QueueListener so worker coroutines never block on I/O
- All handlers behind the root logger (child loggers propagate)
- JSONL format for machine parsing
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

# Global queue and listener for non-blocking logging
_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False

logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from reminder_service.core.settings.logs import LoggingSettings

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with atexit; safe to call more than once.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    force: bool = False,
    **configure_kwargs: Any,
) -> None:
    """Ensure logging is configured once across entrypoints.

    Args:
        log_settings: Optional logging settings instance. If omitted, settings
            are loaded via get_logging_settings().
        force: Reconfigure logging even if it was already initialized.
        **configure_kwargs: Explicit overrides for configure_logging().
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    settings_obj = log_settings
    if settings_obj is None:
        from reminder_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = settings_obj.to_logging_kwargs()
    if configure_kwargs:
        log_config = {**log_config, **configure_kwargs}

    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    console_level: str | None = None,
    file_level: str | None = None,
    file_path: str | Path | None = None,
    json_logs: bool = True,
    console_enabled: bool = True,
    service_name: str = "reminder-service",
    capture_warnings: bool = True,
    include_function_name: bool = False,
    include_process_info: bool = False,
    include_thread_info: bool = False,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    quiet_loggers: dict[str, str] | None = None,
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console_level: Console handler level. If None, uses log_level.
        file_level: File handler level. If None, uses log_level.
        file_path: Path to log file. None disables file logging.
        json_logs: Enable JSONL (JSON Lines) structured logging.
        console_enabled: Enable console/stderr logging.
        service_name: Static ``service`` field added to JSON records.
        capture_warnings: Forward Python warnings to logging system.
        include_function_name: Include function name in records.
        include_process_info: Include process ID and name in records.
        include_thread_info: Include thread ID and name in records.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        quiet_loggers: Logger name -> level overrides.
        **kwargs: Ignored; logged at debug level.

    Example:
        from reminder_service.core.settings import get_logging_settings
        configure_logging(**get_logging_settings().to_logging_kwargs())
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs.keys())))

    logging.captureWarnings(capture_warnings)

    # Replace any previous listener so reconfiguration doesn't duplicate output
    shutdown()

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    formatters_config = _build_formatters_config(
        json_logs=json_logs,
        service_name=service_name,
        include_function_name=include_function_name,
        include_process_info=include_process_info,
        include_thread_info=include_thread_info,
    )

    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters_config,
        "root": {
            "level": log_level.upper(),
            "handlers": [],
        },
        "loggers": {
            name: {"level": level.upper()} for name, level in (quiet_loggers or {}).items()
        },
    }
    logging.config.dictConfig(logging_config)

    _setup_queue_logging(
        formatter=_make_formatter(formatters_config),
        console_enabled=console_enabled,
        console_level=console_level or log_level,
        file_path=path,
        file_level=file_level or log_level,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
    )


def _build_formatters_config(
    json_logs: bool,
    service_name: str,
    include_function_name: bool,
    include_process_info: bool,
    include_thread_info: bool,
) -> dict[str, Any]:
    """Build formatters configuration for dictConfig.

    Returns:
        A dict with a single ``json`` or ``text`` formatter entry.
    """
    if json_logs:
        fmt_keys = {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        if include_function_name:
            fmt_keys["function"] = "funcName"

        return {
            "json": {
                "()": "reminder_service.infra.logging.formatters.JSONFormatter",
                "fmt_keys": fmt_keys,
                "static": {"service": service_name},
                "include_process_info": include_process_info,
                "include_thread_info": include_thread_info,
            }
        }

    format_parts = ["%(asctime)s", "%(levelname)s", "%(name)s"]
    if include_function_name:
        format_parts.append("%(funcName)s")
    if include_process_info:
        format_parts.append("[%(processName)s:%(process)d]")
    if include_thread_info:
        format_parts.append("[%(threadName)s:%(thread)d]")
    format_parts.append("%(message)s")

    return {
        "text": {
            "format": " - ".join(format_parts),
            "datefmt": TEXT_DATEFMT,
        }
    }


def _make_formatter(formatters_config: dict[str, Any]) -> logging.Formatter:
    from reminder_service.infra.logging.formatters import JSONFormatter

    if "json" in formatters_config:
        options = {k: v for k, v in formatters_config["json"].items() if k != "()"}
        return JSONFormatter(**options)

    text = formatters_config["text"]
    return logging.Formatter(fmt=text["format"], datefmt=text["datefmt"])


def _setup_queue_logging(
    formatter: logging.Formatter,
    console_enabled: bool,
    console_level: str,
    file_path: Path | None,
    file_level: str,
    file_max_bytes: int,
    file_backup_count: int,
) -> None:
    """Attach a QueueHandler to root and start a QueueListener with the real handlers."""
    global _log_queue, _listener, _queue_handler, _ATEXIT_REGISTERED

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(console_level.upper())
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(file_level.upper())
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True

    _queue_handler = QueueHandler(_log_queue)
    logging.getLogger().addHandler(_queue_handler)
