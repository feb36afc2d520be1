"""Tests for TreeConfig, DescendantOptions and identifier validation."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from tree_service.core.database.exceptions import TreeConfigurationError
from tree_service.core.database.hierarchy import DEFAULT_MAX_DEPTH, DescendantOptions, TreeConfig
from tree_service.core.database.validation import (
    IdentifierValidationError,
    OrderTerm,
    parse_order_clause,
    validate_identifier,
)
from tree_service.core.settings import TreeSettings


@pytest.mark.unit
class TestTreeConfig:
    """Construction-time validation of TreeConfig."""

    def test_defaults(self):
        config = TreeConfig()

        assert config.primary_key == "id"
        assert config.foreign_key == "parent_id"
        assert config.order is None
        assert config.order_terms == ()
        assert config.max_depth == DEFAULT_MAX_DEPTH == 100_000
        assert config.cascade_on_delete is True

    def test_order_terms_parsed(self):
        config = TreeConfig(order="position, name DESC")

        assert config.order_terms == (
            OrderTerm("position", descending=False),
            OrderTerm("name", descending=True),
        )

    def test_frozen(self):
        config = TreeConfig()

        with pytest.raises(AttributeError):
            config.max_depth = 3  # type: ignore[misc]

    @pytest.mark.parametrize(
        ("kwargs", "option"),
        [
            ({"max_depth": 0}, "max_depth"),
            ({"foreign_key": "id"}, "foreign_key"),
        ],
    )
    def test_invalid_values(self, kwargs, option):
        with pytest.raises(TreeConfigurationError) as exc_info:
            TreeConfig(**kwargs)

        assert exc_info.value.option == option

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"foreign_key": "parent; DROP TABLE x"},
            {"primary_key": ""},
            {"order": "name sideways"},
            {"order": "lower(name)"},
        ],
    )
    def test_malformed_identifiers(self, kwargs):
        with pytest.raises(TreeConfigurationError):
            TreeConfig(**kwargs)

    def test_from_settings(self):
        settings = TreeSettings(foreign_key="up_id", order="name", max_depth=42, cascade_on_delete=False)

        config = TreeConfig.from_settings(settings)

        assert config == TreeConfig(foreign_key="up_id", order="name", max_depth=42, cascade_on_delete=False)

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("TREE_MAX_DEPTH", "7")
        monkeypatch.setenv("TREE_ORDER", "name desc")

        config = TreeConfig.from_settings()

        assert config.max_depth == 7
        assert config.order_terms == (OrderTerm("name", descending=True),)


@pytest.mark.unit
class TestDescendantOptions:
    """Typed descendant traversal options."""

    def test_defaults(self):
        options = DescendantOptions()

        assert options.include_self is True
        assert options.raw is False
        assert options.level_limit is None
        assert options.exact_level is False

    def test_at_depth_takes_precedence(self):
        options = DescendantOptions(to_depth=1, at_depth=3)

        assert options.level_limit == 3
        assert options.exact_level is True

    def test_to_depth(self):
        options = DescendantOptions(to_depth=2)

        assert options.level_limit == 2
        assert options.exact_level is False

    def test_negative_depth_rejected(self):
        with pytest.raises(ValidationError):
            DescendantOptions(to_depth=-1)

    def test_unknown_option_rejected(self):
        with pytest.raises(ValidationError):
            DescendantOptions(no_self=True)

    def test_frozen(self):
        options = DescendantOptions()

        with pytest.raises(ValidationError):
            options.raw = True


@pytest.mark.unit
class TestIdentifierValidation:
    """SQL identifier and ordering clause validation."""

    @pytest.mark.parametrize("name", ["id", "parent_id", "_private", "Col$1"])
    def test_valid(self, name):
        assert validate_identifier(name) == name

    @pytest.mark.parametrize("name", ["", "1abc", "a-b", "a b", "x" * 64, "select"])
    def test_invalid(self, name):
        with pytest.raises(IdentifierValidationError):
            validate_identifier(name)

    def test_reserved_allowed_on_request(self):
        assert validate_identifier("table", allow_reserved=True) == "table"

    def test_parse_blank_clause(self):
        assert parse_order_clause(None) == []
        assert parse_order_clause("  ") == []

    def test_parse_directions(self):
        assert parse_order_clause("a asc, b desc, c") == [
            OrderTerm("a", False),
            OrderTerm("b", True),
            OrderTerm("c", False),
        ]

    @pytest.mark.parametrize("clause", ["a,,b", "a desc extra", "a up"])
    def test_parse_rejects_malformed(self, clause):
        with pytest.raises(IdentifierValidationError):
            parse_order_clause(clause)
