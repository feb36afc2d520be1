"""Async engine and session management.

The engine is created lazily from ``DatabaseSettings`` on first use, so
importing this module never opens a connection. Tree queries take the
session explicitly; ``session_scope`` is the usual way to obtain one.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from tree_service.core.settings import get_db_settings

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from tree_service.core.settings.database import DatabaseSettings

logger = logging.getLogger(__name__)

SLOW_QUERY_SECONDS = 1.0

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def create_engine_from_settings(settings: DatabaseSettings | None = None, **overrides: Any) -> AsyncEngine:
    """Create an async engine from ``DatabaseSettings`` (env/YAML if omitted).

    Statement timing is attached so slow recursive queries show up in the
    logs with the active trace id.
    """
    settings = settings or get_db_settings()
    options: dict[str, Any] = {"echo": settings.echo, "pool_pre_ping": settings.pool_pre_ping}
    options.update(overrides)
    engine = create_async_engine(settings.dsn, **options)
    _instrument(engine)
    logger.debug("Created database engine", extra={"dialect": engine.dialect.name})
    return engine


def _instrument(engine: AsyncEngine) -> None:
    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def _before_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
    ) -> None:
        _ = conn, cursor, statement, parameters, executemany
        context._query_start_time = time.perf_counter()

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def _after_cursor_execute(
        conn: Any, cursor: Any, statement: str, parameters: Any, context: Any, executemany: Any
    ) -> None:
        _ = conn, cursor, parameters, executemany
        duration = time.perf_counter() - context._query_start_time
        if duration < SLOW_QUERY_SECONDS:
            return

        extra: dict[str, Any] = {"duration_seconds": round(duration, 3)}
        span = trace.get_current_span()
        if span and span.get_span_context().is_valid:
            extra["trace_id"] = format(span.get_span_context().trace_id, "032x")
        logger.warning("Slow query: %s", statement.split("\n", 1)[0], extra=extra)


def get_engine() -> AsyncEngine:
    """Process-wide engine, created on first call."""
    global _engine
    if _engine is None:
        _engine = create_engine_from_settings()
    return _engine


def get_sessionmaker(engine: AsyncEngine | None = None) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to ``engine`` (or the process-wide engine).

    Sessions do not expire instances on commit so results stay readable
    after the scope closes.
    """
    global _sessionmaker
    if engine is not None:
        return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    if _sessionmaker is None:
        _sessionmaker = async_sessionmaker(
            get_engine(), class_=AsyncSession, expire_on_commit=False, autoflush=False
        )
    return _sessionmaker


@asynccontextmanager
async def session_scope(engine: AsyncEngine | None = None) -> AsyncGenerator[AsyncSession]:
    """Transactional session: commits on success, rolls back on error.

    Example:
        async with session_scope() as session:
            ancestors = await engine.ancestors(session, node_id)
    """
    async with get_sessionmaker(engine)() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_database(engine: AsyncEngine | None = None) -> None:
    """Check connectivity with ``SELECT 1``.

    Raises:
        sqlalchemy.exc.DBAPIError: If the database cannot be reached.
    """
    engine = engine or get_engine()
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("Failed to connect to database", extra={"url": engine.url.render_as_string(), "error": str(e)})
        raise
    logger.info("Database connection established", extra={"dialect": engine.dialect.name})


async def close_database() -> None:
    """Dispose of the process-wide engine, if one was created."""
    global _engine, _sessionmaker
    if _engine is None:
        return
    await _engine.dispose()
    _engine = None
    _sessionmaker = None
    logger.debug("Database engine disposed")


__all__ = [
    "close_database",
    "create_engine_from_settings",
    "get_engine",
    "get_sessionmaker",
    "init_database",
    "session_scope",
]
