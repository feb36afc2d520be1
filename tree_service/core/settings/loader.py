"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from tree_service.core.settings.loader import get_tree_settings

    settings = get_tree_settings()  # First call: loads and validates
    settings = get_tree_settings()  # Subsequent calls: returns cached instance

Testing:
    Clear the caches to force a reload after changing the environment:
    clear_all_caches()
"""

from __future__ import annotations

from functools import lru_cache

from .database import DatabaseSettings
from .logs import LoggingSettings
from .tree import TreeSettings


@lru_cache(maxsize=1)
def get_tree_settings() -> TreeSettings:
    """Get cached tree table settings.

    Returns:
        Validated and frozen TreeSettings instance.
    """
    return TreeSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    """Get cached database settings.

    Returns:
        Validated and frozen DatabaseSettings instance.
    """
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached logging settings.

    Returns:
        Validated and frozen LoggingSettings instance.
    """
    return LoggingSettings()


def clear_all_caches() -> None:
    """Clear every settings cache (tests, or after changing env vars)."""
    get_tree_settings.cache_clear()
    get_db_settings.cache_clear()
    get_logging_settings.cache_clear()
