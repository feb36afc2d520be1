"""Output formatting utilities for CLI commands."""

import json
from typing import Any

import click


def error(message: str) -> None:
    """Print an error message in red."""
    click.secho(f"✗ {message}", fg="red", err=True)


def info(message: str) -> None:
    """Print an info message in blue."""
    click.secho(f"ℹ {message}", fg="blue")


def header(message: str) -> None:
    """Print a header message in cyan bold."""
    click.secho(message, fg="cyan", bold=True)


def emit_json(payload: Any) -> None:
    """Print ``payload`` as indented JSON (non-JSON values via str)."""
    click.echo(json.dumps(payload, indent=2, default=str, ensure_ascii=False))
