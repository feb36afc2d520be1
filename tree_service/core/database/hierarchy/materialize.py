"""Rebuild a nested tree from a flat, level-ordered traversal.

``materialize`` is single pass: it relies on the descendant query ordering
(depth ascending, then parent) so that every parent is seen before any of
its children. Rows whose parent is not part of the listing (the start nodes
of the traversal) become top-level keys.

Example:
    >>> rows = [(root, 0), (child1, 1), (child2, 1), (grandchild1, 2)]
    >>> materialize(rows)
    {root: {child1: {grandchild1: {}}, child2: {}}}
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from operator import attrgetter
from typing import Any

NestedTree = dict[Any, "NestedTree"]


def materialize[N](
    rows: Iterable[tuple[N, int] | N],
    *,
    key: Callable[[N], Any] = attrgetter("id"),
    parent_key: Callable[[N], Any] = attrgetter("parent_id"),
) -> dict[N, NestedTree]:
    """Nest a depth-ordered listing into ``{node: {child: {...}}}``.

    Args:
        rows: ``(node, depth)`` pairs as returned by a raw descendant
            traversal, or bare nodes, in depth-ascending order.
        key: Returns a node's identity.
        parent_key: Returns a node's parent identity.

    Returns:
        Insertion-ordered mapping of top-level nodes to their nested
        children; leaves map to empty dicts.
    """
    result: dict[N, NestedTree] = {}
    cache: dict[Any, NestedTree] = {}

    for row in rows:
        node = row[0] if isinstance(row, tuple) else row
        children: NestedTree = {}
        cache[key(node)] = children

        parent_children = cache.get(parent_key(node))
        if parent_children is not None:
            parent_children[node] = children
            # A start node reached again below another start node moves there.
            result.pop(node, None)
        else:
            result[node] = children

    return result


def count_nodes(tree: Mapping[Any, Mapping[Any, Any]]) -> int:
    """Total number of keys in a nested tree, at every level."""
    return sum(1 + count_nodes(children) for children in tree.values())


__all__ = [
    "NestedTree",
    "count_nodes",
    "materialize",
]
