"""Tree-query engine for adjacency-list tables.

One ``TreeQueryEngine`` is built per (model, ``TreeConfig``) pair. Every
operation takes the session explicitly, runs a single query and returns
model instances (or scalars). Nothing is cached between calls and absent
data is never an error: missing nodes give empty lists, ``None`` or
``False``. Store errors propagate unchanged.

Nodes may be passed as loaded instances or as raw identities; containment
and batch operations also accept any iterable mixing the two.

Example:
    engine = TreeQueryEngine(Category, TreeConfig(order="name"))

    ancestors = await engine.ancestors(session, grandchild)
    tree = await engine.descendants_of(session, root)
    flat = await engine.descendants_of(session, root, DescendantOptions(raw=True, to_depth=1))
    inside = await engine.is_within(session, root, [grandchild.id])
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import inspect

from tree_service.core.database.hierarchy import queries
from tree_service.core.database.hierarchy.config import TreeConfig
from tree_service.core.database.hierarchy.materialize import NestedTree, materialize
from tree_service.core.database.hierarchy.node import TreeNode
from tree_service.core.database.hierarchy.options import DescendantOptions
from tree_service.infra.logging.lazy import get_lazy_logger

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from tree_service.core.settings.tree import TreeSettings

DEFAULT_OPTIONS = DescendantOptions()

type Descendants[T] = dict[T, NestedTree] | list[tuple[T, int]]


class TreeQueryEngine[T]:
    """Recursive tree queries over one mapped model.

    Provides:
        - ancestors / root / depth / parent (upward)
        - children / siblings / self_and_siblings / is_root (one level)
        - roots / first_root (forest level)
        - descendants_of / nodes_and_descendants (downward, nested or raw)
        - nodes_within / is_within (subtree containment)
        - ancestors_with_nodes (nodes plus their ancestry, deduplicated)
        - get (a node instance from an instance or identity)

    The configuration is taken from, in order: the ``config`` argument, the
    model's ``__tree_config__`` (set by ``AdjacencyTreeMixin``), or the
    defaults of ``TreeConfig``.

    Raises:
        TreeConfigurationError: At construction, if the configuration does
            not match the model's table.
    """

    __slots__ = ("model", "config", "tree", "_lazy")

    def __init__(self, model: type[T], config: TreeConfig | None = None) -> None:
        """Initialize the engine and resolve the configuration.

        Args:
            model: SQLAlchemy mapped class holding the tree rows
            config: Column names and limits (see class docstring for defaults)
        """
        self.model = model
        self.config = config or getattr(model, "__tree_config__", None) or TreeConfig()
        self.tree = queries.TreeTable.resolve(model, self.config)
        self._lazy = get_lazy_logger(__name__, tree_model=model.__name__)

    @classmethod
    def from_settings(cls, model: type[T], settings: TreeSettings | None = None) -> TreeQueryEngine[T]:
        """Build an engine configured from ``TreeSettings`` (env/YAML)."""
        return cls(model, TreeConfig.from_settings(settings))

    def __repr__(self) -> str:
        return f"TreeQueryEngine(model={self.model.__name__}, config={self.config!r})"

    def node(self, node: T | Any) -> TreeNode[T]:
        """Pair a node (instance or identity) with this engine."""
        return TreeNode(self, node)

    # ------------------------------------------------------------------
    # Identity helpers
    # ------------------------------------------------------------------

    def identity(self, node: T | Any) -> Any:
        """Identity of ``node``; non-model values are taken as identities."""
        if isinstance(node, self.model):
            return getattr(node, self.tree.pk_attr)
        return node

    def parent_identity(self, node: T) -> Any:
        """Parent reference of a loaded instance."""
        return getattr(node, self.tree.fk_attr)

    def identities(self, *values: T | Any | Iterable[T | Any] | None) -> list[Any]:
        """Normalize nodes, identities, or iterables of either to identities.

        Iterables are flattened one level, ``None`` entries are dropped and
        duplicates removed (first occurrence wins).
        """
        seen: dict[Any, None] = {}
        for value in values:
            if value is None:
                continue
            if isinstance(value, (self.model, str, bytes)) or not isinstance(value, Iterable):
                value = [value]
            for node in value:
                ident = self.identity(node) if node is not None else None
                if ident is not None:
                    seen.setdefault(ident, None)
        return list(seen)

    async def get(self, session: AsyncSession, node: T | Any) -> T | None:
        """The node as a loaded instance, or None if it does not exist.

        Instances are returned as they are unless their parent reference is
        expired; those, and raw identities, are read with one query so no
        lazy load is triggered on an async session.
        """
        if isinstance(node, self.model):
            state = inspect(node)
            if self.tree.fk_attr not in state.unloaded:
                return node
        ident = self.identity(node)
        if ident is None:
            return None
        result = await session.execute(queries.node_statement(self.tree, ident))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Upward
    # ------------------------------------------------------------------

    async def ancestors(self, session: AsyncSession, node: T | Any) -> list[T]:
        """Ancestors of ``node`` from the root down to its parent.

        The node itself is excluded; a root (or unknown node) gives ``[]``.
        """
        ident = self.identity(node)
        if ident is None:
            return []
        result = await session.execute(queries.ancestors_statement(self.tree, ident))
        ancestors = list(result.scalars().all())
        self._lazy.debug(lambda: f"tree.ancestors: {ident!r} -> {len(ancestors)} rows")
        return ancestors

    async def root(self, session: AsyncSession, node: T | Any) -> T | None:
        """Root of the tree containing ``node``.

        Returns None when ``node`` is itself a root (it has no ancestors)
        or does not exist. Use ``TreeNode.root_or_self`` to get the node
        back instead.
        """
        ancestors = await self.ancestors(session, node)
        return ancestors[0] if ancestors else None

    async def depth(self, session: AsyncSession, node: T | Any) -> int | None:
        """Number of hops from ``node`` to its root (0 for a root).

        Returns None if the node does not exist.
        """
        ident = self.identity(node)
        if ident is None:
            return None
        result = await session.execute(queries.depth_statement(self.tree, ident))
        depth = result.scalar_one_or_none()
        return int(depth) if depth is not None else None

    async def parent(self, session: AsyncSession, node: T | Any) -> T | None:
        """Direct parent of ``node``, or None for roots and unknown nodes."""
        instance = await self.get(session, node)
        if instance is None:
            return None
        parent_id = self.parent_identity(instance)
        if parent_id is None:
            return None
        result = await session.execute(queries.node_statement(self.tree, parent_id))
        return result.scalar_one_or_none()

    async def ancestors_with_nodes(
        self,
        session: AsyncSession,
        nodes: T | Any | Iterable[T | Any],
        *,
        exclude: T | Any | Iterable[T | Any] | None = None,
    ) -> list[T]:
        """The given nodes plus every ancestor of them, each listed once.

        Args:
            session: Database session
            nodes: Nodes or identities to start from
            exclude: Nodes or identities to leave out of the result

        Returns:
            Distinct instances, farthest ancestors first
        """
        ids = self.identities(nodes)
        if not ids:
            return []
        stmt = queries.ancestors_with_nodes_statement(self.tree, ids, self.identities(exclude))
        result = await session.execute(stmt)
        return list(result.scalars().unique().all())

    # ------------------------------------------------------------------
    # One level
    # ------------------------------------------------------------------

    async def children(self, session: AsyncSession, node: T | Any) -> list[T]:
        """Direct children of ``node`` in sibling order."""
        ident = self.identity(node)
        if ident is None:
            return []
        result = await session.execute(queries.children_statement(self.tree, ident))
        return list(result.scalars().all())

    async def self_and_siblings(self, session: AsyncSession, node: T | Any) -> list[T]:
        """All children of ``node``'s parent (all roots for a root), node included."""
        instance = await self.get(session, node)
        if instance is None:
            return []
        parent_id = self.parent_identity(instance)
        if parent_id is None:
            return await self.roots(session)
        return await self.children(session, parent_id)

    async def siblings(self, session: AsyncSession, node: T | Any) -> list[T]:
        """Nodes sharing ``node``'s parent, excluding ``node`` itself."""
        ident = self.identity(node)
        return [
            sibling
            for sibling in await self.self_and_siblings(session, node)
            if self.identity(sibling) != ident
        ]

    async def is_root(self, session: AsyncSession, node: T | Any) -> bool:
        """True if ``node`` exists and has no parent."""
        instance = await self.get(session, node)
        return instance is not None and self.parent_identity(instance) is None

    # ------------------------------------------------------------------
    # Forest level
    # ------------------------------------------------------------------

    async def roots(self, session: AsyncSession) -> list[T]:
        """Every node without a parent, in sibling order."""
        result = await session.execute(queries.roots_statement(self.tree))
        return list(result.scalars().all())

    async def first_root(self, session: AsyncSession) -> T | None:
        """First root in sibling order, or None for an empty table."""
        result = await session.execute(queries.roots_statement(self.tree).limit(1))
        return result.scalar_one_or_none()

    # ------------------------------------------------------------------
    # Downward
    # ------------------------------------------------------------------

    async def nodes_and_descendants(
        self,
        session: AsyncSession,
        *nodes: T | Any,
        options: DescendantOptions | None = None,
    ) -> Descendants[T]:
        """Start nodes plus all of their descendants.

        With no nodes given, traversal starts from every root. Nodes that
        were given but resolve to no identity produce an empty result.

        Args:
            session: Database session
            *nodes: Start nodes or identities (iterables are flattened)
            options: Traversal options; ``include_self`` defaults to True here

        Returns:
            ``{node: {child: {...}}}`` by default, or ``[(node, depth), ...]``
            when ``options.raw`` is set. Raw depths are 0 for start nodes,
            or start at 0 with the children when ``include_self`` is off.
        """
        options = options or DEFAULT_OPTIONS
        ids = self.identities(*nodes)
        if nodes and not ids:
            return [] if options.raw else {}

        stmt = queries.descendants_statement(self.tree, ids, options)
        result = await session.execute(stmt)
        rows = [(node, int(depth)) for node, depth in result.all()]
        self._lazy.debug(
            lambda: f"tree.descendants: start={ids or 'roots'} options={options!r} -> {len(rows)} rows"
        )

        if options.raw:
            return rows
        return materialize(rows, key=self.identity, parent_key=self.parent_identity)

    async def descendants_of(
        self,
        session: AsyncSession,
        node: T | Any,
        options: DescendantOptions | None = None,
    ) -> Descendants[T]:
        """Descendants of a single node; the node itself is never included."""
        options = (options or DEFAULT_OPTIONS).model_copy(update={"include_self": False})
        if self.identity(node) is None:
            return [] if options.raw else {}
        return await self.nodes_and_descendants(session, node, options=options)

    # ------------------------------------------------------------------
    # Containment
    # ------------------------------------------------------------------

    async def nodes_within(
        self,
        session: AsyncSession,
        src: T | Any | Iterable[T | Any],
        candidates: T | Any | Iterable[T | Any],
    ) -> list[T]:
        """Candidates that are a source node or a descendant of one.

        Returns full instances, each once. Empty ``src`` or ``candidates``
        gives ``[]``.
        """
        src_ids, candidate_ids = self.identities(src), self.identities(candidates)
        if not src_ids or not candidate_ids:
            return []
        stmt = queries.within_statement(self.tree, src_ids, candidate_ids)
        result = await session.execute(stmt)
        return list(result.scalars().unique().all())

    async def is_within(
        self,
        session: AsyncSession,
        src: T | Any | Iterable[T | Any],
        candidates: T | Any | Iterable[T | Any],
    ) -> bool:
        """True if any candidate is a source node or a descendant of one."""
        src_ids, candidate_ids = self.identities(src), self.identities(candidates)
        if not src_ids or not candidate_ids:
            return False
        stmt = queries.within_count_statement(self.tree, src_ids, candidate_ids)
        result = await session.execute(stmt)
        return (result.scalar() or 0) > 0


__all__ = [
    "DEFAULT_OPTIONS",
    "Descendants",
    "TreeQueryEngine",
]
