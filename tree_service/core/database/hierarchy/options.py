"""Options for descendant traversal.

Replaces positional flag sniffing with an explicit, validated model.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class DescendantOptions(BaseModel):
    """How a descendant traversal is bounded and shaped.

    Depth limits count levels below the start nodes: a direct child is at
    level 1, a grandchild at level 2.

    Attributes:
        include_self: Return the start nodes themselves.
        raw: Return a flat ``[(node, depth), ...]`` list instead of a
            nested mapping.
        to_depth: Return levels ``<= to_depth``.
        at_depth: Return only level ``== at_depth``. Takes precedence over
            ``to_depth``.

    Example:
        >>> opts = DescendantOptions(include_self=False, at_depth=2)
        >>> opts.level_limit
        2
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    include_self: bool = True
    raw: bool = False
    to_depth: int | None = Field(default=None, ge=0)
    at_depth: int | None = Field(default=None, ge=0)

    @property
    def level_limit(self) -> int | None:
        """Deepest level the traversal needs to reach, or None if unbounded."""
        if self.at_depth is not None:
            return self.at_depth
        return self.to_depth

    @property
    def exact_level(self) -> bool:
        """True when only rows at ``level_limit`` are wanted."""
        return self.at_depth is not None


__all__ = ["DescendantOptions"]
