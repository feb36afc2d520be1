"""tree-service: hierarchical queries over adjacency-list tables."""

from tree_service.core.database.exceptions import (
    SelfParentError,
    TreeConfigurationError,
    TreeError,
)
from tree_service.core.database.hierarchy import (
    AdjacencyTreeMixin,
    DescendantOptions,
    TreeConfig,
    TreeNode,
    TreeQueryEngine,
    count_nodes,
    materialize,
)

__version__ = "0.1.0"

__all__ = [
    "AdjacencyTreeMixin",
    "DescendantOptions",
    "SelfParentError",
    "TreeConfig",
    "TreeConfigurationError",
    "TreeError",
    "TreeNode",
    "TreeQueryEngine",
    "__version__",
    "count_nodes",
    "materialize",
]
