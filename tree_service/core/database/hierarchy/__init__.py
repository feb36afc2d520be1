"""Hierarchical (adjacency-list) tree support.

Trees are stored as rows of a single table where each row references its
parent's identity (NULL for roots). Every question about the tree is
answered with a recursive common table expression, so the table is never
loaded wholesale.

Components:
    - TreeConfig: column names, sibling order and recursion ceiling
    - TreeQueryEngine: async tree queries for one mapped model
    - TreeNode: a node identity paired with its engine
    - DescendantOptions: typed options for descendant traversal
    - materialize / count_nodes: nest a flat traversal into dicts
    - AdjacencyTreeMixin: parent column, relationships, self-parent check

Example:
    >>> from tree_service.core.database import Base, IntegerPKMixin
    >>> from tree_service.core.database.hierarchy import (
    ...     AdjacencyTreeMixin, DescendantOptions, TreeConfig, TreeQueryEngine,
    ... )
    >>>
    >>> class Category(Base, IntegerPKMixin, AdjacencyTreeMixin):
    ...     __tablename__ = "categories"
    ...     __tree_config__ = TreeConfig(order="name")
    ...     name: Mapped[str] = mapped_column(String(255))
    >>>
    >>> engine = TreeQueryEngine(Category)
    >>> await engine.descendants_of(session, root)
    {<child1>: {<grandchild1>: {}}, <child2>: {}}
    >>> await engine.descendants_of(session, root, DescendantOptions(raw=True, at_depth=2))
    [(<grandchild1>, 1)]

Note:
    - Requires recursive CTE support (PostgreSQL, SQLite >= 3.8.3, MySQL 8, ...)
    - Index the parent column; AdjacencyTreeMixin does so by default
"""

from tree_service.core.database.hierarchy.config import DEFAULT_MAX_DEPTH, TreeConfig
from tree_service.core.database.hierarchy.engine import TreeQueryEngine
from tree_service.core.database.hierarchy.materialize import count_nodes, materialize
from tree_service.core.database.hierarchy.mixins import AdjacencyTreeMixin
from tree_service.core.database.hierarchy.node import TreeNode
from tree_service.core.database.hierarchy.options import DescendantOptions

__all__ = [
    "DEFAULT_MAX_DEPTH",
    "AdjacencyTreeMixin",
    "DescendantOptions",
    "TreeConfig",
    "TreeNode",
    "TreeQueryEngine",
    "count_nodes",
    "materialize",
]
