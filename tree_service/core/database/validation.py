"""SQL identifier and ordering-clause validation.

Tree configuration names columns by string (parent reference, identity,
sibling order). Those strings are validated here before they are resolved
against a mapped table, so that a configuration typo fails at engine
construction instead of producing a malformed recursive query.

Example:
    from tree_service.core.database.validation import (
        parse_order_clause,
        validate_identifier,
    )

    column = validate_identifier("parent_id", identifier_type="column")
    parse_order_clause("position, name desc")
    # [OrderTerm(column='position', descending=False),
    #  OrderTerm(column='name', descending=True)]
"""

from __future__ import annotations

import re
from typing import NamedTuple

# PostgreSQL identifier rules:
# - Max 63 characters
# - Start with letter or underscore
# - Contain letters, digits, underscores, dollar signs
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_$]*$")
MAX_IDENTIFIER_LENGTH = 63

# SQL reserved keywords that should not be used as unquoted identifiers
RESERVED_KEYWORDS = frozenset(
    {
        "select",
        "insert",
        "update",
        "delete",
        "drop",
        "truncate",
        "create",
        "alter",
        "grant",
        "revoke",
        "union",
        "join",
        "where",
        "from",
        "table",
        "index",
        "database",
        "schema",
        "execute",
        "exec",
    },
)

_DIRECTIONS = {"asc": False, "desc": True}


class IdentifierValidationError(ValueError):
    """Invalid SQL identifier."""


class OrderTerm(NamedTuple):
    """One column of a sibling ordering clause."""

    column: str
    descending: bool = False


def validate_identifier(
    name: str,
    *,
    identifier_type: str = "identifier",
    allow_reserved: bool = False,
) -> str:
    """Validate a SQL identifier.

    Ensures the identifier follows PostgreSQL naming rules and doesn't
    contain dangerous patterns.

    Args:
        name: The identifier to validate
        identifier_type: Type description for error messages (e.g., "table", "column")
        allow_reserved: If True, allow SQL reserved keywords

    Returns:
        The validated identifier (unchanged if valid)

    Raises:
        IdentifierValidationError: If the identifier is invalid

    Example:
        >>> validate_identifier("parent_id")
        'parent_id'
        >>> validate_identifier("; DROP TABLE nodes; --")  # Raises
        IdentifierValidationError: Invalid identifier characters
    """
    if not name:
        msg = f"Empty {identifier_type} name not allowed"
        raise IdentifierValidationError(msg)

    if len(name) > MAX_IDENTIFIER_LENGTH:
        msg = f"{identifier_type} name exceeds maximum length of {MAX_IDENTIFIER_LENGTH}"
        raise IdentifierValidationError(msg)

    if not VALID_IDENTIFIER.match(name):
        msg = (
            f"Invalid {identifier_type} name: must start with letter or underscore, "
            "contain only letters, digits, underscores, or dollar signs"
        )
        raise IdentifierValidationError(msg)

    if not allow_reserved and name.lower() in RESERVED_KEYWORDS:
        msg = f"'{name}' is a SQL reserved keyword and cannot be used as {identifier_type}"
        raise IdentifierValidationError(msg)

    return name


def parse_order_clause(clause: str | None) -> list[OrderTerm]:
    """Parse a sibling ordering clause such as ``"position, name desc"``.

    Each comma separated term is a column name optionally followed by
    ``asc`` or ``desc`` (case-insensitive). Anything else, including
    function calls or raw SQL fragments, is rejected.

    Args:
        clause: Ordering clause, or None/blank for no ordering

    Returns:
        Ordered list of OrderTerm tuples (empty when clause is blank)

    Raises:
        IdentifierValidationError: If a term is malformed
    """
    if clause is None or not clause.strip():
        return []

    terms: list[OrderTerm] = []
    for raw_term in clause.split(","):
        parts = raw_term.split()
        if not parts or len(parts) > 2:
            msg = f"Invalid ordering term: {raw_term.strip()!r}"
            raise IdentifierValidationError(msg)

        column = validate_identifier(parts[0], identifier_type="order column")
        descending = False
        if len(parts) == 2:
            direction = parts[1].lower()
            if direction not in _DIRECTIONS:
                msg = f"Invalid ordering direction {parts[1]!r}, expected 'asc' or 'desc'"
                raise IdentifierValidationError(msg)
            descending = _DIRECTIONS[direction]
        terms.append(OrderTerm(column, descending))

    return terms


__all__ = [
    "IdentifierValidationError",
    "OrderTerm",
    "parse_order_clause",
    "validate_identifier",
]
