"""Recursive CTE statement builders for adjacency-list trees.

Every tree question is answered by one ``WITH RECURSIVE`` query against the
backing table: a seed SELECT picks the start rows, and a recursive step
joins the table back onto the CTE (child -> parent for ancestors,
parent -> child for descendants) while carrying a ``tree_depth`` counter.
The counter doubles as the recursion guard: no step is taken once it would
reach ``max_depth``, so corrupted (cyclic) data truncates instead of
recursing forever.

The builders here are pure: they return ``Select`` objects and never touch
a session. ``TreeQueryEngine`` executes them.

Example:
    >>> tree = TreeTable.resolve(Category, TreeConfig(order="name"))
    >>> stmt = descendants_statement(tree, [1], DescendantOptions(raw=True))
    >>> print(stmt)  # WITH RECURSIVE tree_crumbs(...) AS (...) SELECT ...
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sqlalchemy import Integer, func, inspect, literal_column, select
from sqlalchemy.exc import NoInspectionAvailable
from sqlalchemy.orm import aliased

from tree_service.core.database.exceptions import TreeConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy import CTE, ColumnElement, Select, Table
    from sqlalchemy.sql.elements import UnaryExpression

    from tree_service.core.database.hierarchy.config import TreeConfig
    from tree_service.core.database.hierarchy.options import DescendantOptions
    from tree_service.core.database.validation import OrderTerm

DEPTH_COLUMN = "tree_depth"
CTE_NAME = "tree_crumbs"


@dataclass(frozen=True, slots=True)
class TreeTable:
    """A mapped model resolved against a ``TreeConfig``.

    Holds the table, the column keys used in SQL and the ORM attribute keys
    used to read identities off loaded instances (they differ when a model
    maps a column under another attribute name).
    """

    model: type[Any]
    table: Table
    pk: str
    fk: str
    pk_attr: str
    fk_attr: str
    order_terms: tuple[OrderTerm, ...]
    max_depth: int

    @classmethod
    def resolve(cls, model: type[Any], config: TreeConfig) -> TreeTable:
        """Resolve column names in ``config`` against ``model``'s table.

        Raises:
            TreeConfigurationError: If the model is not mapped or a
                configured column does not exist.
        """
        try:
            mapper = inspect(model)
        except NoInspectionAvailable as exc:
            msg = f"{model!r} is not a mapped class"
            raise TreeConfigurationError(msg) from exc

        table = mapper.local_table
        if DEPTH_COLUMN in table.c:
            msg = f"Table {table.name!r} already has a {DEPTH_COLUMN!r} column"
            raise TreeConfigurationError(msg)

        for option, name in (("primary_key", config.primary_key), ("foreign_key", config.foreign_key)):
            if name not in table.c:
                msg = f"Column {name!r} not found on table {table.name!r}"
                raise TreeConfigurationError(msg, option=option)
        for term in config.order_terms:
            if term.column not in table.c:
                msg = f"Order column {term.column!r} not found on table {table.name!r}"
                raise TreeConfigurationError(msg, option="order")

        return cls(
            model=model,
            table=table,
            pk=config.primary_key,
            fk=config.foreign_key,
            pk_attr=mapper.get_property_by_column(table.c[config.primary_key]).key,
            fk_attr=mapper.get_property_by_column(table.c[config.foreign_key]).key,
            order_terms=config.order_terms,
            max_depth=config.max_depth,
        )

    def sibling_order(self, columns: Any) -> list[UnaryExpression[Any]]:
        """Configured sibling ordering applied to a column collection."""
        return [
            columns[term.column].desc() if term.descending else columns[term.column].asc()
            for term in self.order_terms
        ]


def _depth_literal(value: int) -> ColumnElement[int]:
    # Rendered inline so both halves of the UNION agree on an integer type.
    return literal_column(str(value), Integer).label(DEPTH_COLUMN)


def _downward_cte(
    tree: TreeTable,
    seed_filter: ColumnElement[bool],
    *,
    start_depth: int = 0,
    depth_ceiling: int | None = None,
) -> CTE:
    """Seed rows plus every descendant, each tagged with ``tree_depth``.

    A child is added only while ``parent depth + 1 < max_depth`` and, when
    ``depth_ceiling`` is given, while ``parent depth + 1 <= depth_ceiling``.
    """
    table = tree.table
    seed = select(*table.c, _depth_literal(start_depth)).where(seed_filter)
    crumbs = seed.cte(CTE_NAME, recursive=True)

    previous = crumbs.alias("tree_previous")
    child = table.alias("tree_child")
    next_depth = previous.c[DEPTH_COLUMN] + 1
    step = (
        select(*child.c, next_depth.label(DEPTH_COLUMN))
        .join_from(previous, child, child.c[tree.fk] == previous.c[tree.pk])
        .where(next_depth < tree.max_depth)
    )
    if depth_ceiling is not None:
        step = step.where(next_depth <= depth_ceiling)

    return crumbs.union_all(step)


def _upward_cte(tree: TreeTable, seed_filter: ColumnElement[bool], *, start_depth: int) -> CTE:
    """Seed rows plus every ancestor, each tagged with ``tree_depth``."""
    table = tree.table
    seed = select(*table.c, _depth_literal(start_depth)).where(seed_filter)
    crumbs = seed.cte(CTE_NAME, recursive=True)

    previous = crumbs.alias("tree_previous")
    parent = table.alias("tree_parent")
    next_depth = previous.c[DEPTH_COLUMN] + 1
    step = (
        select(*parent.c, next_depth.label(DEPTH_COLUMN))
        .join_from(previous, parent, parent.c[tree.pk] == previous.c[tree.fk])
        .where(next_depth < tree.max_depth + start_depth)
    )
    return crumbs.union_all(step)


# ============================================================================
# Ancestors / depth
# ============================================================================


def ancestors_statement(tree: TreeTable, node_id: Any) -> Select[Any]:
    """Ancestors of ``node_id`` ordered root first, excluding the node.

    The seed row gets depth 1 and every hop adds one, so ordering by depth
    descending puts the root first and the immediate parent last.
    """
    crumbs = _upward_cte(tree, tree.table.c[tree.pk] == node_id, start_depth=1)
    node = aliased(tree.model, crumbs)
    return (
        select(node)
        .where(crumbs.c[tree.pk] != node_id)
        .order_by(crumbs.c[DEPTH_COLUMN].desc())
    )


def depth_statement(tree: TreeTable, node_id: Any) -> Select[Any]:
    """Number of hops from ``node_id`` to its root.

    Only identity and parent columns are carried through the recursion.
    Selects NULL when the node does not exist.
    """
    table = tree.table
    seed = select(
        table.c[tree.pk],
        table.c[tree.fk],
        _depth_literal(0),
    ).where(table.c[tree.pk] == node_id)
    crumbs = seed.cte(CTE_NAME, recursive=True)

    previous = crumbs.alias("tree_previous")
    parent = table.alias("tree_parent")
    next_depth = previous.c[DEPTH_COLUMN] + 1
    crumbs = crumbs.union_all(
        select(parent.c[tree.pk], parent.c[tree.fk], next_depth)
        .join_from(previous, parent, parent.c[tree.pk] == previous.c[tree.fk])
        .where(next_depth < tree.max_depth),
    )
    return select(func.max(crumbs.c[DEPTH_COLUMN]))


def ancestors_with_nodes_statement(
    tree: TreeTable,
    node_ids: Sequence[Any],
    exclude_ids: Sequence[Any] = (),
) -> Select[Any]:
    """The given nodes plus all of their ancestors.

    Rows are ordered farthest ancestor first; a node reached from several
    start nodes appears once per path, so callers deduplicate.
    """
    crumbs = _upward_cte(tree, tree.table.c[tree.pk].in_(node_ids), start_depth=0)
    node = aliased(tree.model, crumbs)
    stmt = select(node).order_by(crumbs.c[DEPTH_COLUMN].desc(), crumbs.c[tree.pk])
    if exclude_ids:
        stmt = stmt.where(crumbs.c[tree.pk].not_in(exclude_ids))
    return stmt


# ============================================================================
# Descendants
# ============================================================================


def descendants_statement(
    tree: TreeTable,
    node_ids: Sequence[Any],
    options: DescendantOptions,
) -> Select[Any]:
    """Start nodes (or all roots) plus their descendants, level by level.

    Selects ``(node, tree_depth)`` rows. Start rows are seeded at depth 0,
    or at -1 when ``include_self`` is false so that their children start at
    depth 0 and the start rows fall out of the ``tree_depth >= 0`` filter.

    ``to_depth``/``at_depth`` count levels below the start nodes; they both
    bound the recursion and filter the final rows.

    Ordering is depth, then parent reference with NULL first (so root seeds
    precede non-root seeds on every dialect), then the configured sibling
    order and identity. Every parent therefore precedes its children.
    """
    table = tree.table
    start_depth = 0 if options.include_self else -1

    if node_ids:
        seed_filter = table.c[tree.pk].in_(node_ids)
    else:
        seed_filter = table.c[tree.fk].is_(None)

    level_limit = options.level_limit
    ceiling = None if level_limit is None else level_limit + start_depth
    crumbs = _downward_cte(tree, seed_filter, start_depth=start_depth, depth_ceiling=ceiling)

    depth = crumbs.c[DEPTH_COLUMN]
    node = aliased(tree.model, crumbs)
    stmt = select(node, depth).where(depth >= 0)
    if ceiling is not None:
        stmt = stmt.where(depth == ceiling if options.exact_level else depth <= ceiling)

    return stmt.order_by(
        depth,
        crumbs.c[tree.fk].nulls_first(),
        *tree.sibling_order(crumbs.c),
        crumbs.c[tree.pk],
    )


# ============================================================================
# Containment
# ============================================================================


def within_statement(tree: TreeTable, src_ids: Sequence[Any], candidate_ids: Sequence[Any]) -> Select[Any]:
    """Candidates that are a source node or one of its descendants."""
    crumbs = _downward_cte(tree, tree.table.c[tree.pk].in_(src_ids))
    node = aliased(tree.model, crumbs)
    return (
        select(node)
        .where(crumbs.c[tree.pk].in_(candidate_ids))
        .order_by(crumbs.c[DEPTH_COLUMN], *tree.sibling_order(crumbs.c), crumbs.c[tree.pk])
    )


def within_count_statement(
    tree: TreeTable,
    src_ids: Sequence[Any],
    candidate_ids: Sequence[Any],
) -> Select[Any]:
    """Count of closure rows matching a candidate (0 means none reachable)."""
    crumbs = _downward_cte(tree, tree.table.c[tree.pk].in_(src_ids))
    return select(func.count()).select_from(crumbs).where(crumbs.c[tree.pk].in_(candidate_ids))


# ============================================================================
# Plain (non-recursive) lookups
# ============================================================================


def node_statement(tree: TreeTable, node_id: Any) -> Select[Any]:
    """Single node by identity."""
    return select(tree.model).where(tree.table.c[tree.pk] == node_id)


def roots_statement(tree: TreeTable) -> Select[Any]:
    """All nodes without a parent, in sibling order."""
    table = tree.table
    return (
        select(tree.model)
        .where(table.c[tree.fk].is_(None))
        .order_by(*tree.sibling_order(table.c), table.c[tree.pk])
    )


def children_statement(tree: TreeTable, parent_id: Any) -> Select[Any]:
    """Direct children of ``parent_id``, in sibling order."""
    table = tree.table
    return (
        select(tree.model)
        .where(table.c[tree.fk] == parent_id)
        .order_by(*tree.sibling_order(table.c), table.c[tree.pk])
    )


__all__ = [
    "CTE_NAME",
    "DEPTH_COLUMN",
    "TreeTable",
    "ancestors_statement",
    "ancestors_with_nodes_statement",
    "children_statement",
    "depth_statement",
    "descendants_statement",
    "node_statement",
    "roots_statement",
    "within_count_statement",
    "within_statement",
]
