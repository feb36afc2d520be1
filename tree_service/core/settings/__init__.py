"""Application settings (pydantic-settings, env + conf.d YAML)."""

from __future__ import annotations

from .database import DatabaseSettings
from .loader import clear_all_caches, get_db_settings, get_logging_settings, get_tree_settings
from .logs import LoggingSettings
from .tree import TreeSettings

__all__ = [
    "DatabaseSettings",
    "LoggingSettings",
    "TreeSettings",
    "clear_all_caches",
    "get_db_settings",
    "get_logging_settings",
    "get_tree_settings",
]
