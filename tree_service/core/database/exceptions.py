"""Database and tree-query exceptions.

Custom exceptions for tree operations that provide better error messages
and typing than raw SQLAlchemy exceptions. Store-level failures
(``sqlalchemy.exc.*``) are never wrapped; they propagate to the caller
unchanged.
"""
from __future__ import annotations

from typing import Any


class DatabaseError(Exception):
    """Base exception for database-layer operations.

    Raised when an operation fails due to programming errors,
    configuration issues, or invalid writes.
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        """Initialize database error.

        Args:
            message: Error description
            details: Additional context about the error
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Format error message with details."""
        if self.details:
            details_str = ", ".join(f"{k}={v!r}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message


class TreeError(DatabaseError):
    """Base exception for hierarchical (adjacency-list) operations.

    Reading absent data is never an error: missing nodes produce empty
    lists, ``None`` or ``False``. This hierarchy only covers invalid
    configuration and rejected writes.
    """


class SelfParentError(TreeError, ValueError):
    """A node was assigned as its own parent.

    Raised synchronously at the write boundary (attribute assignment on a
    mapped model) so the invalid state never reaches the database.

    Attributes:
        model_name: Name of the model class
        node_id: Identity of the offending node
    """

    def __init__(self, model_name: str, node_id: Any):
        """Initialize self-parent error.

        Args:
            model_name: Name of the model (e.g., "Category")
            node_id: Identity of the node that referenced itself
        """
        self.model_name = model_name
        self.node_id = node_id
        super().__init__(
            f"{model_name} {node_id!r} cannot be its own parent",
            details={"model": model_name, "id": node_id},
        )

    def __repr__(self) -> str:
        """Repr for debugging."""
        return f"SelfParentError(model={self.model_name!r}, node_id={self.node_id!r})"


class TreeConfigurationError(TreeError):
    """Invalid tree configuration.

    Raised when the engine is built against a model that is not mapped,
    references columns that do not exist, or uses a malformed ordering
    clause or depth ceiling.
    """

    def __init__(self, message: str, option: str | None = None):
        """Initialize configuration error.

        Args:
            message: Error description
            option: Name of the problematic option (if applicable)
        """
        self.option = option
        details = {"option": option} if option else {}
        super().__init__(message, details=details)


__all__ = [
    "DatabaseError",
    "SelfParentError",
    "TreeConfigurationError",
    "TreeError",
]
