"""Logging configuration setup.

- dictConfig for the root and library logger levels
- QueueHandler + QueueListener so handlers never block the event loop
- ContextInjectingFilter for contextvars-based fields
- JSONL or plain text output on stderr and an optional rotating file
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener, RotatingFileHandler
from pathlib import Path
from queue import Queue
from typing import TYPE_CHECKING, Any

from tree_service.infra.logging.context import ContextInjectingFilter
from tree_service.infra.logging.formatters import TEXT_DATEFMT, TEXT_FORMAT, JSONFormatter

if TYPE_CHECKING:
    from tree_service.core.settings.logs import LoggingSettings

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_queue_handler: QueueHandler | None = None
logger = logging.getLogger(__name__)
_LOGGING_INITIALIZED = False
_ATEXIT_REGISTERED = False


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records.

    Registered with ``atexit`` on first configuration; safe to call twice.
    """
    global _log_queue, _listener, _queue_handler

    if _listener is not None:
        _listener.stop()
        _listener = None

    if _queue_handler is not None:
        logging.getLogger().removeHandler(_queue_handler)
        _queue_handler = None

    _log_queue = None


def is_configured() -> bool:
    return _LOGGING_INITIALIZED


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
        from tree_service.core.settings import get_logging_settings

        settings_obj = get_logging_settings()

    log_config = {**settings_obj.to_logging_kwargs(), **configure_kwargs}
    configure_logging(**log_config)
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "WARNING",
    file_path: str | Path | None = None,
    json_logs: bool = False,
    console_enabled: bool = True,
    include_context: bool = True,
    capture_warnings: bool = True,
    file_max_bytes: int = 10 * 1024 * 1024,
    file_backup_count: int = 5,
    service_name: str = "tree-service",
    sql_echo: bool = False,
    **kwargs: Any,
) -> None:
    """Configure logging with dictConfig and the QueueHandler pattern.

    Args:
        log_level: Root logger level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file_path: Path to a JSONL log file. None disables file logging.
        json_logs: Emit JSONL on the console instead of plain text.
        console_enabled: Enable stderr logging.
        include_context: Enable ContextInjectingFilter.
        capture_warnings: Forward Python warnings to logging.
        file_max_bytes: Maximum log file size before rotation.
        file_backup_count: Number of rotated log files to keep.
        service_name: Static ``service`` field in JSON records.
        sql_echo: Set the sqlalchemy.engine logger to INFO.
        **kwargs: Ignored (logged at DEBUG).
    """
    if kwargs:
        logger.debug("Unused logging kwargs supplied: %s", ", ".join(sorted(kwargs)))

    shutdown()
    logging.captureWarnings(capture_warnings)

    path = Path(file_path) if file_path else None
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)

    static = {"service": service_name}
    logging_config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "root": {"level": log_level.upper(), "handlers": []},
        "loggers": {
            "sqlalchemy.engine": {"level": "INFO" if sql_echo else "WARNING"},
        },
    }
    logging.config.dictConfig(logging_config)

    _setup_queue_logging(
        console_enabled=console_enabled,
        file_path=path,
        json_logs=json_logs,
        include_context=include_context,
        file_max_bytes=file_max_bytes,
        file_backup_count=file_backup_count,
        static=static,
    )


def _setup_queue_logging(
    console_enabled: bool,
    file_path: Path | None,
    json_logs: bool,
    include_context: bool,
    file_max_bytes: int,
    file_backup_count: int,
    static: dict[str, Any],
) -> None:
    """Build the real handlers, hand them to a QueueListener and put a
    single QueueHandler on the root logger.

    The file handler always writes JSONL; the console follows ``json_logs``.
    """
    global _log_queue, _listener, _queue_handler, _ATEXIT_REGISTERED

    handlers: list[logging.Handler] = []

    if console_enabled:
        console_handler = logging.StreamHandler()
        if json_logs:
            console_handler.setFormatter(JSONFormatter(static=static))
        else:
            console_handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT))
        handlers.append(console_handler)

    if file_path:
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=file_max_bytes,
            backupCount=file_backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(JSONFormatter(static=static))
        handlers.append(file_handler)

    if not handlers:
        return

    _log_queue = Queue()
    _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
    _listener.start()
    if not _ATEXIT_REGISTERED:
        atexit.register(shutdown)
        _ATEXIT_REGISTERED = True

    # Records from child loggers skip logger-level filters, so context is
    # injected on the handler they all propagate to.
    _queue_handler = QueueHandler(_log_queue)
    if include_context:
        _queue_handler.addFilter(ContextInjectingFilter())
    logging.getLogger().addHandler(_queue_handler)
