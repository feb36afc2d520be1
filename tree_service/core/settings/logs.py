"""Logging configuration settings."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal

from pydantic import AliasChoices, Field, computed_field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_logging_yaml_source

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Structured logging configuration.

    Environment variables use LOG_ prefix.
    Example: LOG_LEVEL=DEBUG, LOG_JSON=true, LOG_FILE_ENABLED=true
    """

    service_name: str = Field(
        default="tree-service",
        description="Service name to include in log records (static field in JSON)",
    )

    level: LogLevel = Field(
        default="WARNING",
        description="Root logger level (DEBUG|INFO|WARNING|ERROR|CRITICAL)",
    )

    json_logs: bool = Field(
        default=False,
        validation_alias=AliasChoices("json_logs", "json", "LOG_JSON"),
        description="Emit JSON Lines instead of plain text on the console",
    )

    console_enabled: bool = Field(
        default=True,
        description="Enable console (stderr) logging",
    )

    file_enabled: bool = Field(
        default=False,
        description="Enable file logging. When False, file_path is ignored.",
    )

    file_path: Path | None = Field(
        default=Path("logs/tree-service.log.jsonl"),
        description="Path to the JSON Lines log file.",
    )

    file_max_bytes: int = Field(
        default=10_485_760,  # 10 MiB
        ge=1024,
        le=1_073_741_824,
        description="Maximum log file size in bytes before rotation.",
    )

    file_backup_count: int = Field(
        default=5,
        ge=0,
        le=100,
        description="Number of rotated log files to keep.",
    )

    include_context: bool = Field(
        default=True,
        description="Inject contextvars-based context into log records via ContextInjectingFilter",
    )

    capture_warnings: bool = Field(
        default=True,
        description="Forward Python `warnings` module output to the logging system.",
    )

    sql_echo: bool = Field(
        default=False,
        description="Raise the sqlalchemy.engine logger to INFO to see emitted SQL.",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str | None) -> str | None:
        """Normalize log level to uppercase."""
        if isinstance(v, str):
            return v.upper()
        return v

    @computed_field
    @property
    def effective_file_path(self) -> Path | None:
        """Return the file path only when file logging is enabled."""
        if not self.file_enabled:
            return None
        return self.file_path

    @computed_field
    @property
    def level_int(self) -> int:
        """Get numeric log level for use with logging module."""
        return getattr(logging, self.level, logging.WARNING)

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Return kwargs suitable for configure_logging(...)."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "file_path": str(self.effective_file_path) if self.effective_file_path else None,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "capture_warnings": self.capture_warnings,
            "sql_echo": self.sql_echo,
        }

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_logging_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
