"""Lazy evaluation support for logging.

Debug messages about tree traversals (identity lists, row counts) are only
built when DEBUG is actually enabled.
"""

from __future__ import annotations

import logging
from typing import Any


class LazyLoggerAdapter(logging.LoggerAdapter):
    """Logger adapter that evaluates callable messages and args on demand.

    Example:
        ```python
        logger = LazyLoggerAdapter(logging.getLogger(__name__), {})
        logger.debug(lambda: f"Seed ids: {sorted(ids)}")
        logger.debug("Rows: %s", lambda: len(rows))
        ```
    """

    def log(
        self,
        level: int,
        msg: Any,
        *args: Any,
        **kwargs: Any,
    ) -> None:
        """Log message, evaluating callables only if ``level`` is enabled.

        Args:
            level: Numeric log level (e.g., logging.DEBUG).
            msg: Log message or callable returning message.
            *args: Format arguments (may include callables).
            **kwargs: Additional kwargs for logging.
        """
        if not self.isEnabledFor(level):
            return

        if callable(msg):
            msg = msg()

        if args:
            args = tuple(arg() if callable(arg) else arg for arg in args)

        super().log(level, msg, *args, **kwargs)

    def debug(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log debug message with lazy evaluation."""
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log info message with lazy evaluation."""
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: Any, *args: Any, **kwargs: Any) -> None:
        """Log warning message with lazy evaluation."""
        self.log(logging.WARNING, msg, *args, **kwargs)


def get_lazy_logger(name: str, **context: Any) -> LazyLoggerAdapter:
    """Get logger with lazy evaluation support.

    Args:
        name: Logger name (usually __name__).
        **context: Optional context bound to every record.

    Returns:
        Logger adapter with lazy evaluation support.
    """
    base_logger = logging.getLogger(name)
    return LazyLoggerAdapter(base_logger, context or {})


__all__ = [
    "LazyLoggerAdapter",
    "get_lazy_logger",
]
