"""Core database package: declarative base, tree queries and validation.

Base Classes and Mixins:
    - Base: Declarative base with constraint naming and auto table naming
    - IntegerPKMixin: Integer auto-increment primary key
    - AdjacencyTreeMixin: Parent column, relationships, self-parent check

Tree Queries:
    - TreeQueryEngine: Recursive-CTE tree queries with explicit sessions
    - TreeConfig, DescendantOptions, TreeNode, materialize

Validation:
    - validate_identifier: Validate SQL identifiers used in tree config
    - parse_order_clause: Parse "col, col desc" sibling ordering clauses

Exceptions:
    - DatabaseError: Base exception for database operations
    - TreeError, SelfParentError, TreeConfigurationError
    - IdentifierValidationError: Invalid SQL identifier
"""

from __future__ import annotations

from tree_service.core.database.base import NAMING_CONVENTION, Base, IntegerPKMixin
from tree_service.core.database.exceptions import (
    DatabaseError,
    SelfParentError,
    TreeConfigurationError,
    TreeError,
)
from tree_service.core.database.hierarchy import (
    AdjacencyTreeMixin,
    DescendantOptions,
    TreeConfig,
    TreeNode,
    TreeQueryEngine,
    count_nodes,
    materialize,
)
from tree_service.core.database.validation import (
    IdentifierValidationError,
    OrderTerm,
    parse_order_clause,
    validate_identifier,
)

__all__ = [
    "NAMING_CONVENTION",
    "AdjacencyTreeMixin",
    "Base",
    "DatabaseError",
    "DescendantOptions",
    "IdentifierValidationError",
    "IntegerPKMixin",
    "OrderTerm",
    "SelfParentError",
    "TreeConfig",
    "TreeConfigurationError",
    "TreeError",
    "TreeNode",
    "TreeQueryEngine",
    "count_nodes",
    "materialize",
    "parse_order_clause",
    "validate_identifier",
]
