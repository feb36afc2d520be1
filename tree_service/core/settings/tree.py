"""Tree table settings.

Environment variables use the TREE_ prefix, e.g. ``TREE_FOREIGN_KEY=parent``,
``TREE_ORDER="position, name desc"``, ``TREE_MAX_DEPTH=500``.
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from tree_service.core.database.hierarchy.config import DEFAULT_MAX_DEPTH
from tree_service.core.database.validation import parse_order_clause, validate_identifier

from .yaml_sources import create_tree_yaml_source


class TreeSettings(BaseSettings):
    """Default ``TreeConfig`` values for engines built from settings."""

    primary_key: str = Field(
        default="id",
        description="Column holding the node identity.",
    )
    foreign_key: str = Field(
        default="parent_id",
        description="Column holding the parent reference (NULL for roots).",
    )
    order: str | None = Field(
        default=None,
        description='Sibling ordering clause, e.g. "position, name desc".',
    )
    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        description="Ceiling on recursive expansion; deeper rows are silently dropped.",
    )
    cascade_on_delete: bool = Field(
        default=True,
        description="Delete a node's subtree along with it.",
    )

    @field_validator("primary_key", "foreign_key")
    @classmethod
    def _check_column(cls, v: str) -> str:
        return validate_identifier(v, identifier_type="column")

    @field_validator("order")
    @classmethod
    def _check_order(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        parse_order_clause(v)
        return v

    model_config = SettingsConfigDict(
        env_prefix="TREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
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
            create_tree_yaml_source(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )
