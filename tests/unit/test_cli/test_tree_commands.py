"""Tests for the ``tree`` CLI commands against a reflected SQLite table."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine
from sqlalchemy.orm import Session

from tree_service.cli.main import cli
from tree_service.core.database.base import Base

from tests.tree_models import Category

ROWS = [
    (1, "root", None),
    (2, "child1", 1),
    (3, "child2", 1),
    (4, "grandchild1", 2),
    (5, "other", None),
    (6, "other_child", 5),
]


@pytest.fixture
def database_url(tmp_path) -> str:
    """SQLite file holding the sample category tree."""
    path = tmp_path / "tree.db"
    sync_engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(sync_engine)
    with Session(sync_engine) as session:
        session.add_all(Category(id=ident, name=name, parent_id=parent) for ident, name, parent in ROWS)
        session.commit()
    sync_engine.dispose()
    return f"sqlite+aiosqlite:///{path}"


@pytest.fixture
def run(database_url):
    runner = CliRunner()

    def invoke(*args: str, table: str = "categories"):
        base = ["tree", "--table", table, "--database-url", database_url, "--order", "name"]
        return runner.invoke(cli, [*base, *args], obj={})

    return invoke


@pytest.mark.unit
class TestTreeGroup:
    """Group-level options."""

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["tree", "--help"])

        assert result.exit_code == 0
        for command in ("roots", "ancestors", "descendants", "depth", "within"):
            assert command in result.output

    def test_table_required(self):
        result = CliRunner().invoke(cli, ["tree", "roots"], obj={})

        assert result.exit_code == 2

    def test_invalid_table_name_rejected(self, run):
        result = run("roots", table="x; drop table categories")

        assert result.exit_code == 2
        assert "Invalid" in result.output

    def test_missing_table_exits_1(self, run):
        result = run("roots", table="no_such_table")

        assert result.exit_code == 1

    def test_unknown_label_column(self, run):
        result = run("--label", "nope", "roots")

        assert result.exit_code == 2

    def test_non_integer_id_rejected(self, run):
        result = run("ancestors", "abc")

        assert result.exit_code == 2


@pytest.mark.unit
class TestNodeCommands:
    """roots / root / ancestors / children / depth."""

    def test_roots_in_sibling_order(self, run):
        result = run("--label", "name", "roots")

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["5  other", "1  root"]

    def test_roots_json(self, run):
        result = run("--format", "json", "roots")

        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert [row["name"] for row in data] == ["other", "root"]
        assert data[1] == {"id": 1, "name": "root", "parent_id": None}

    def test_root_of_descendant(self, run):
        result = run("root", "4")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "1"

    def test_root_of_root_is_itself(self, run):
        result = run("root", "5")

        assert result.output.strip() == "5"

    def test_ancestors_root_first(self, run):
        result = run("ancestors", "4")

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["1", "2"]

    def test_ancestors_of_root_empty(self, run):
        result = run("ancestors", "1")

        assert result.exit_code == 0
        assert "No nodes" in result.output

    def test_children(self, run):
        result = run("children", "1")

        assert result.output.splitlines() == ["2", "3"]

    def test_depth(self, run):
        result = run("depth", "4")

        assert result.exit_code == 0, result.output
        assert result.output.strip() == "2"

    def test_depth_json(self, run):
        result = run("--format", "json", "depth", "6")

        assert json.loads(result.output) == {"id": "6", "depth": 1}

    def test_depth_missing_node(self, run):
        result = run("depth", "999")

        assert result.exit_code == 1
        assert "not found" in result.output


@pytest.mark.unit
class TestDescendantsCommand:
    """Nested and raw descendant output."""

    def test_nested_text(self, run):
        result = run("descendants", "1")

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["2", "  4", "3"]

    def test_include_self(self, run):
        result = run("descendants", "1", "--include-self")

        assert result.output.splitlines() == ["1", "  2", "    4", "  3"]

    def test_every_root_when_no_ids(self, run):
        result = run("descendants", "--include-self")

        assert result.output.splitlines() == ["5", "  6", "1", "  2", "    4", "  3"]

    def test_raw_with_depths(self, run):
        result = run("descendants", "1", "--raw")

        assert result.output.splitlines() == ["0\t2", "0\t3", "1\t4"]

    def test_to_depth(self, run):
        result = run("descendants", "1", "--raw", "--to-depth", "1")

        assert result.output.splitlines() == ["0\t2", "0\t3"]

    def test_at_depth(self, run):
        result = run("descendants", "1", "--raw", "--at-depth", "2")

        assert result.output.splitlines() == ["1\t4"]

    def test_nested_json(self, run):
        result = run("--format", "json", "descendants", "2", "--include-self")

        data = json.loads(result.output)
        assert data == [
            {
                "node": {"id": 2, "name": "child1", "parent_id": 1},
                "children": [{"node": {"id": 4, "name": "grandchild1", "parent_id": 2}, "children": []}],
            },
        ]

    def test_leaf_has_no_descendants(self, run):
        result = run("descendants", "4")

        assert result.exit_code == 0
        assert "No nodes" in result.output


@pytest.mark.unit
class TestWithinCommand:
    """Subtree containment."""

    def test_lists_contained_candidates(self, run):
        result = run("within", "--src", "1", "--candidate", "4", "--candidate", "6")

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == ["within", "4"]

    def test_not_within(self, run):
        result = run("within", "--src", "2", "--candidate", "3")

        assert result.output.splitlines() == ["not within"]

    def test_json(self, run):
        result = run("--format", "json", "within", "--src", "5", "--candidate", "6")

        data = json.loads(result.output)
        assert data["within"] is True
        assert [row["id"] for row in data["nodes"]] == [6]

    def test_quiet_exit_status(self, run):
        assert run("within", "--src", "1", "--candidate", "4", "-q").exit_code == 0
        assert run("within", "--src", "1", "--candidate", "6", "-q").exit_code == 1
