"""Models shared by the tree test-suite.

Imported as ``tests.tree_models`` (the repository root is on pytest's
pythonpath).
"""

from __future__ import annotations

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from tree_service.core.database.base import Base, IntegerPKMixin
from tree_service.core.database.hierarchy import AdjacencyTreeMixin, TreeConfig


class Category(Base, IntegerPKMixin, AdjacencyTreeMixin):
    """Tree with name ordering and subtree deletion."""

    __tablename__ = "categories"
    __tree_config__ = TreeConfig(order="name")

    name: Mapped[str] = mapped_column(String(100))

    def __repr__(self) -> str:
        return f"<Category {self.name}>"


class Folder(Base, IntegerPKMixin, AdjacencyTreeMixin):
    """Tree with a custom parent column, descending order and no cascade."""

    __tablename__ = "folders"
    __tree_config__ = TreeConfig(foreign_key="container_id", order="position desc", cascade_on_delete=False)

    name: Mapped[str] = mapped_column(String(100))
    position: Mapped[int] = mapped_column(Integer, default=0)

    def __repr__(self) -> str:
        return f"<Folder {self.name}>"


__all__ = ["Category", "Folder"]
