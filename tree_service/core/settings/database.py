"""Database connection settings.

Any SQLAlchemy async URL is accepted; the default is a local SQLite file
through aiosqlite. Environment variables use the DB_ prefix, and
``DATABASE_URL`` is honoured as an alias for the DSN.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import create_db_yaml_source

DEFAULT_DSN = "sqlite+aiosqlite:///./tree.db"


class DatabaseSettings(BaseSettings):
    """Async engine settings."""

    dsn: str = Field(
        default=DEFAULT_DSN,
        validation_alias=AliasChoices("dsn", "DB_DSN", "DATABASE_URL"),
        description="SQLAlchemy async database URL.",
    )
    echo: bool = Field(
        default=False,
        description="Log every SQL statement through the sqlalchemy.engine logger.",
    )
    pool_pre_ping: bool = Field(
        default=True,
        description="Test pooled connections before handing them out.",
    )

    @field_validator("dsn")
    @classmethod
    def _require_scheme(cls, v: str) -> str:
        if "://" not in v:
            msg = f"dsn must be a SQLAlchemy URL (dialect+driver://...), got {v!r}"
            raise ValueError(msg)
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.dsn.startswith("sqlite")

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        populate_by_name=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        """Customize settings source precedence: init > yaml > env > dotenv > secrets."""
        return (
            init_settings,
            create_db_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
