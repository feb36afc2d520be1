"""Context injection for structured logging.

Fields set with ``set_log_context`` are attached to every log record emitted
from the same async task (or thread) by ``ContextInjectingFilter``. The CLI
uses it to tag records with the table and command being run.
"""

from __future__ import annotations

import logging
from contextvars import ContextVar
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task/thread.

    Example:
        set_log_context(table="categories", command="descendants")
        logger.info("Running")  # record carries table and command
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Drop every field from the current logging context."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Copy the contextvars logging context onto each LogRecord.

    Existing record attributes are never overwritten. Installed on the root
    logger by ``configure_logging`` when ``include_context`` is on.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
