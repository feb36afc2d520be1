"""Log formatters with trace correlation."""
from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from opentelemetry import trace

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# LogRecord attributes that are not copied into the JSON payload as extras.
_RECORD_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    }
)


class JSONFormatter(logging.Formatter):
    """JSON Lines formatter with UTC timestamps.

    Adds OpenTelemetry ``trace_id``/``span_id`` when a span is active, any
    fields injected by ``ContextInjectingFilter`` or passed via ``extra``,
    and the configured static fields (service name).

    Example output:
        {"level": "DEBUG", "logger": "tree.Category", "message": "tree.ancestors: 4 -> 2 rows",
         "timestamp": "2026-01-01T00:00:00.123Z", "service": "tree-service"}
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Mapping of output keys to LogRecord attributes.
            static: Static fields to include in every record (e.g., {"service": "tree-service"}).
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {k: getattr(record, v, None) for k, v in self.fmt_keys.items()}

        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        span = trace.get_current_span()
        if span and span.get_span_context().is_valid:
            ctx = span.get_span_context()
            data["trace_id"] = format(ctx.trace_id, "032x")
            data["span_id"] = format(ctx.span_id, "016x")
            data["trace_flags"] = f"{ctx.trace_flags:02x}"

        # Keep one record per line.
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        if self.static:
            data.update(self.static)

        for key, value in record.__dict__.items():
            if key not in _RECORD_ATTRS and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
