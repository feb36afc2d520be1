"""CLI utilities for running async operations and formatting output."""

from tree_service.cli.utils.async_runner import coro
from tree_service.cli.utils.formatters import emit_json, error, header, info

__all__ = [
    "coro",
    "emit_json",
    "error",
    "header",
    "info",
]
