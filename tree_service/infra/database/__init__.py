"""Database engine and session helpers."""

from tree_service.infra.database.session import (
    close_database,
    create_engine_from_settings,
    get_engine,
    get_sessionmaker,
    init_database,
    session_scope,
)

__all__ = [
    "close_database",
    "create_engine_from_settings",
    "get_engine",
    "get_sessionmaker",
    "init_database",
    "session_scope",
]
