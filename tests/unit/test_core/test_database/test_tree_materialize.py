"""Tests for materialize and count_nodes."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from tree_service.core.database.hierarchy import count_nodes, materialize


@dataclass(frozen=True)
class Row:
    id: int
    parent_id: int | None
    label: str = ""


@pytest.mark.unit
class TestMaterialize:
    """Single-pass nesting of a level-ordered listing."""

    def test_nests_children_under_parents(self):
        root, a, b, a1 = Row(1, None), Row(2, 1), Row(3, 1), Row(4, 2)

        tree = materialize([(root, 0), (a, 1), (b, 1), (a1, 2)])

        assert tree == {root: {a: {a1: {}}, b: {}}}

    def test_boundary_rows_stay_top_level(self):
        a, b, a1 = Row(2, 1), Row(3, 1), Row(4, 2)

        tree = materialize([(a, 0), (b, 0), (a1, 1)])

        assert list(tree) == [a, b]
        assert tree[a] == {a1: {}}

    def test_insertion_order_preserved(self):
        parent = Row(1, None)
        children = [Row(i, 1) for i in (9, 3, 7)]

        tree = materialize([parent, *children])

        assert list(tree[parent]) == children

    def test_start_node_reached_again_moves_under_its_parent(self):
        root, child, leaf = Row(1, None), Row(2, 1), Row(3, 2)

        tree = materialize([(child, 0), (root, 0), (child, 1), (leaf, 1), (leaf, 2)])

        assert tree == {root: {child: {leaf: {}}}}

    def test_accepts_bare_nodes(self):
        root, child = Row(1, None), Row(2, 1)

        assert materialize([root, child]) == {root: {child: {}}}

    def test_custom_keys(self):
        root, child = Row(1, None, "r"), Row(2, None, "c")
        parents = {"c": "r"}

        tree = materialize(
            [(root, 0), (child, 1)],
            key=lambda row: row.label,
            parent_key=lambda row: parents.get(row.label),
        )

        assert tree == {root: {child: {}}}

    def test_empty(self):
        assert materialize([]) == {}


@pytest.mark.unit
class TestCountNodes:
    """Recursive key count."""

    def test_counts_every_level(self):
        assert count_nodes({"a": {"b": {"c": {}}, "d": {}}, "e": {}}) == 5

    def test_empty(self):
        assert count_nodes({}) == 0
