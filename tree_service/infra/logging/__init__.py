"""Logging infrastructure.

- JSONL or plain-text output through a QueueHandler/QueueListener pair
- contextvars-based context injection (``set_log_context``)
- Lazy evaluation for debug messages (``get_lazy_logger``)
- OpenTelemetry trace correlation in JSON records

Usage:
    from tree_service.infra.logging import set_log_context, setup_logging

    setup_logging()                      # LoggingSettings from env/YAML
    set_log_context(table="categories")  # attached to every record
"""

from tree_service.infra.logging.config import configure_logging, is_configured, setup_logging, shutdown
from tree_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from tree_service.infra.logging.formatters import JSONFormatter
from tree_service.infra.logging.lazy import LazyLoggerAdapter, get_lazy_logger

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "LazyLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_lazy_logger",
    "get_log_context",
    "is_configured",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
