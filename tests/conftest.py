"""Pytest configuration and shared fixtures.

Organization:
    - Environment: keep settings independent of the developer machine
    - Database Fixtures: in-memory SQLite engine and session
    - Tree Fixtures: a small sample forest and its query engine

Sample forest (``sample_tree``)::

    root
    ├── child1
    │   └── grandchild1
    └── child2
    other
    └── other_child
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from tree_service.core.database.base import Base
from tree_service.core.database.hierarchy import TreeQueryEngine
from tree_service.core.settings import clear_all_caches
from tree_service.infra.logging import clear_log_context

from tests.tree_models import Category

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

    from sqlalchemy.ext.asyncio import AsyncEngine

# Settings must not pick up conf/ files or .env from the working directory
for _prefix in ("TREE", "DB", "LOGGING"):
    os.environ.setdefault(f"{_prefix}_CONFIG_DIR", "/nonexistent/tree-service-test-conf")


# ============================================================================
# Environment
# ============================================================================


@pytest.fixture(autouse=True)
def _reset_caches() -> Generator[None]:
    """Clear cached settings and log context around every test."""
    clear_all_caches()
    clear_log_context()
    yield
    clear_all_caches()
    clear_log_context()


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Async SQLAlchemy engine on a fresh in-memory SQLite database."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """Session with every test model's table created.

    Instances do not expire on commit, like the service's own sessions.
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============================================================================
# Tree Fixtures
# ============================================================================


@pytest.fixture
async def sample_tree(db_session: AsyncSession) -> dict[str, Category]:
    """Insert the sample forest and return its nodes by name."""
    root = Category(name="root", parent_id=None)
    child1 = Category(name="child1", parent=root)
    child2 = Category(name="child2", parent=root)
    grandchild1 = Category(name="grandchild1", parent=child1)
    other = Category(name="other", parent_id=None)
    other_child = Category(name="other_child", parent=other)

    db_session.add_all([root, other])
    await db_session.commit()

    nodes = [root, child1, child2, grandchild1, other, other_child]
    return {node.name: node for node in nodes}


@pytest.fixture
def category_tree() -> TreeQueryEngine[Category]:
    """Query engine for ``Category`` using the model's ``__tree_config__``."""
    return TreeQueryEngine(Category)
