"""Node-level view of a ``TreeQueryEngine``.

``TreeNode`` pairs one node (instance or identity) with an engine so that
per-node questions read naturally without putting query methods on the
model class.

Example:
    node = engine.node(child1)
    await node.ancestors(session)   # [root]
    await node.siblings(session)    # [child2]
    await node.descendants(session) # {grandchild1: {}}
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.database.hierarchy.engine import Descendants, TreeQueryEngine
    from tree_service.core.database.hierarchy.options import DescendantOptions


class TreeNode[T]:
    """A node identity bound to the engine that knows its table."""

    __slots__ = ("engine", "node")

    def __init__(self, engine: TreeQueryEngine[T], node: T | Any) -> None:
        self.engine = engine
        self.node = node

    @property
    def id(self) -> Any:
        return self.engine.identity(self.node)

    def __repr__(self) -> str:
        return f"TreeNode({self.engine.model.__name__}, id={self.id!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TreeNode):
            return NotImplemented
        return self.engine is other.engine and self.id == other.id

    def __hash__(self) -> int:
        return hash((id(self.engine), self.id))

    async def ancestors(self, session: AsyncSession) -> list[T]:
        return await self.engine.ancestors(session, self.node)

    async def root(self, session: AsyncSession) -> T | None:
        """Root of this node's tree; None when this node is a root."""
        return await self.engine.root(session, self.node)

    async def root_or_self(self, session: AsyncSession) -> T | None:
        """Root of this node's tree, or the node itself when it is a root.

        Returns None only when the node does not exist.
        """
        root = await self.engine.root(session, self.node)
        if root is not None:
            return root
        return await self.engine.get(session, self.node)

    async def depth(self, session: AsyncSession) -> int | None:
        return await self.engine.depth(session, self.node)

    async def parent(self, session: AsyncSession) -> T | None:
        return await self.engine.parent(session, self.node)

    async def children(self, session: AsyncSession) -> list[T]:
        return await self.engine.children(session, self.node)

    async def siblings(self, session: AsyncSession) -> list[T]:
        return await self.engine.siblings(session, self.node)

    async def self_and_siblings(self, session: AsyncSession) -> list[T]:
        return await self.engine.self_and_siblings(session, self.node)

    async def is_root(self, session: AsyncSession) -> bool:
        return await self.engine.is_root(session, self.node)

    async def descendants(
        self,
        session: AsyncSession,
        options: DescendantOptions | None = None,
    ) -> Descendants[T]:
        """Descendants of this node (never including it)."""
        return await self.engine.descendants_of(session, self.node, options)

    async def is_ancestor_of(self, session: AsyncSession, others: T | Any | Iterable[T | Any]) -> bool:
        """True if any of ``others`` is this node or lies in its subtree."""
        return await self.engine.is_within(session, self.node, others)


__all__ = ["TreeNode"]
