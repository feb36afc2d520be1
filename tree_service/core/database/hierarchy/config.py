"""Tree configuration resolved once per engine.

A ``TreeConfig`` names the columns that carry the tree (identity and parent
reference), the sibling ordering, the recursion ceiling and whether deleting
a node removes its subtree. It is immutable; build a new engine to change
it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from tree_service.core.database.exceptions import TreeConfigurationError
from tree_service.core.database.validation import (
    IdentifierValidationError,
    OrderTerm,
    parse_order_clause,
    validate_identifier,
)

if TYPE_CHECKING:
    from tree_service.core.settings.tree import TreeSettings

DEFAULT_MAX_DEPTH = 100_000


@dataclass(frozen=True, slots=True)
class TreeConfig:
    """Column naming and traversal limits for one adjacency-list table.

    Attributes:
        primary_key: Column holding the node identity.
        foreign_key: Column holding the parent reference (NULL for roots).
        order: Sibling ordering clause, e.g. ``"position, name desc"``.
            Applied to children, roots and as a tie-breaker inside
            descendant levels.
        max_depth: Ceiling on recursive expansion. Exceeding it truncates
            results silently; it guards against runaway recursion on
            corrupted (cyclic) data.
        cascade_on_delete: Whether deleting a node deletes its subtree.
            Consumed by ``AdjacencyTreeMixin`` when declaring the schema.

    Example:
        >>> config = TreeConfig(order="name", max_depth=50)
        >>> config.order_terms
        (OrderTerm(column='name', descending=False),)
    """

    primary_key: str = "id"
    foreign_key: str = "parent_id"
    order: str | None = None
    max_depth: int = DEFAULT_MAX_DEPTH
    cascade_on_delete: bool = True
    order_terms: tuple[OrderTerm, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            validate_identifier(self.primary_key, identifier_type="primary key column")
            validate_identifier(self.foreign_key, identifier_type="foreign key column")
            terms = tuple(parse_order_clause(self.order))
        except IdentifierValidationError as exc:
            raise TreeConfigurationError(str(exc)) from exc

        if self.primary_key == self.foreign_key:
            msg = "primary_key and foreign_key must name different columns"
            raise TreeConfigurationError(msg, option="foreign_key")
        if self.max_depth < 1:
            msg = f"max_depth must be a positive integer, got {self.max_depth!r}"
            raise TreeConfigurationError(msg, option="max_depth")

        object.__setattr__(self, "order_terms", terms)

    @classmethod
    def from_settings(cls, settings: TreeSettings | None = None) -> TreeConfig:
        """Build a config from ``TreeSettings`` (loaded from env/YAML if omitted)."""
        if settings is None:
            from tree_service.core.settings import get_tree_settings

            settings = get_tree_settings()

        return cls(
            primary_key=settings.primary_key,
            foreign_key=settings.foreign_key,
            order=settings.order,
            max_depth=settings.max_depth,
            cascade_on_delete=settings.cascade_on_delete,
        )


__all__ = [
    "DEFAULT_MAX_DEPTH",
    "TreeConfig",
]
