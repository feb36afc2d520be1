"""Mixin for models stored as an adjacency-list tree.

Declares the parent reference column, the ``parent``/``children``
relationships and the write-time rule that a node can never be its own
parent. Tree queries live on ``TreeQueryEngine``; pair the model with one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import ForeignKey, Integer, event
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship, validates
from sqlalchemy.types import TypeEngine

from tree_service.core.database.exceptions import SelfParentError
from tree_service.core.database.hierarchy.config import TreeConfig

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection
    from sqlalchemy.orm import Mapper


class AdjacencyTreeMixin:
    """Mixin for models with a self-referencing parent column.

    Configure per model with ``__tree_config__``; ``TreeQueryEngine`` picks
    the same config up when none is passed explicitly.

    Example:
        >>> from tree_service.core.database import Base, IntegerPKMixin
        >>>
        >>> class Category(Base, IntegerPKMixin, AdjacencyTreeMixin):
        ...     __tablename__ = "categories"
        ...     __tree_config__ = TreeConfig(order="name")
        ...     name: Mapped[str] = mapped_column(String(255))
        >>>
        >>> root = Category(name="root")
        >>> child = Category(name="child", parent=root)
        >>> engine = TreeQueryEngine(Category)
        >>> await engine.ancestors(session, child)
        [<Category root>]

    Note:
        - With ``cascade_on_delete`` (the default) the foreign key is
          declared ``ON DELETE CASCADE`` and ``children`` cascades ORM
          deletes, so removing a node removes its whole subtree.
        - Without it, orphaned children are re-parented to NULL (they
          become roots).
        - ``children`` loads in the configured sibling order.
        - The self-parent rule is checked on assignment and again on the
          whole row at flush.
        - Indirect cycles (A -> B -> A) are not detected here.
    """

    __allow_unmapped__ = True

    __tree_config__: ClassVar[TreeConfig] = TreeConfig()
    # Column type of the parent reference; must match the identity column
    __tree_key_type__: ClassVar[type[TypeEngine[Any]]] = Integer

    @declared_attr
    def parent_id(cls) -> Mapped[int | None]:
        config = cls.__tree_config__
        return mapped_column(
            config.foreign_key,
            cls.__tree_key_type__,
            ForeignKey(
                f"{cls.__tablename__}.{config.primary_key}",
                ondelete="CASCADE" if config.cascade_on_delete else "SET NULL",
            ),
            nullable=True,
            index=True,
            comment="Parent node reference (NULL for roots)",
        )

    @declared_attr
    def parent(cls):
        return relationship(
            cls.__name__,
            remote_side=f"{cls.__name__}.{cls.__tree_config__.primary_key}",
            back_populates="children",
        )

    @declared_attr
    def children(cls):
        config = cls.__tree_config__
        if config.cascade_on_delete:
            cascade = "all, delete-orphan"
        else:
            cascade = "save-update, merge"

        def sibling_order() -> list[Any]:
            columns = cls.__table__.c
            return [
                *(
                    columns[term.column].desc() if term.descending else columns[term.column].asc()
                    for term in config.order_terms
                ),
                columns[config.primary_key],
            ]

        return relationship(
            cls.__name__,
            back_populates="parent",
            cascade=cascade,
            order_by=sibling_order,
        )

    @validates("parent_id")
    def _validate_parent_id(self, key: str, value: Any) -> Any:
        """Reject a parent reference equal to the node's own identity."""
        own_id = getattr(self, self.__tree_config__.primary_key, None)
        if own_id is not None and value is not None and value == own_id:
            raise SelfParentError(type(self).__name__, own_id)
        return value

    @validates("parent")
    def _validate_parent(self, key: str, value: Any) -> Any:
        """Reject assigning the node itself as its parent."""
        if value is self:
            raise SelfParentError(
                type(self).__name__,
                getattr(self, self.__tree_config__.primary_key, None),
            )
        return value


@event.listens_for(AdjacencyTreeMixin, "before_insert", propagate=True)
@event.listens_for(AdjacencyTreeMixin, "before_update", propagate=True)
def _reject_self_parent_row(mapper: Mapper[Any], connection: Connection, target: Any) -> None:
    """Check the whole row at flush time.

    The attribute validators miss a parent reference assigned before the
    node's own identity (``Category(parent_id=7, id=7)``).
    """
    config = target.__tree_config__
    table = mapper.local_table
    own_id = getattr(target, mapper.get_property_by_column(table.c[config.primary_key]).key)
    parent_id = getattr(target, mapper.get_property_by_column(table.c[config.foreign_key]).key)
    if own_id is not None and own_id == parent_id:
        raise SelfParentError(type(target).__name__, own_id)


__all__ = [
    "AdjacencyTreeMixin",
]
