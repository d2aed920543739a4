"""Read model over one built and aggregated category snapshot."""

from collections.abc import Iterable, Mapping
from typing import Any

from app.core.aggregates import compute_aggregates
from app.core.filter_engine import FilterResult, filter_tree, visible_forest
from app.core.traversal import iter_tree
from app.core.tree_builder import MAX_DEPTH, HierarchyWarning, build_tree, coerce_nodes
from app.schemas.category import CategoryNode, CategoryPath, CategoryRead, TreeNode


class CategoryHierarchy:
    """Built category forest with id lookups.

    The snapshot is immutable; rebuild it from the store after every
    mutation.

    Usage:
        hierarchy = CategoryHierarchy.from_nodes(await store.list_nodes())
        hierarchy.children_of(parent_id=3)
        hierarchy.filter("glass").auto_expand_ids
    """

    def __init__(
        self,
        nodes: list[CategoryNode],
        forest: list[TreeNode],
        warnings: list[HierarchyWarning],
        max_depth: int = MAX_DEPTH,
    ) -> None:
        """Initialize from already built parts.

        Args:
            nodes: Flat records the forest was built from
            forest: Aggregated forest
            warnings: Builder warnings
            max_depth: Depth limit the forest was built with
        """
        self.nodes = nodes
        self.forest = forest
        self.warnings = warnings
        self.max_depth = max_depth
        self._index: dict[int, TreeNode] = {}
        self._parents: dict[int, int | None] = {}
        self._register(forest)

    def _register(self, forest: list[TreeNode]) -> None:
        pending: list[tuple[TreeNode, int | None]] = [(root, None) for root in forest]
        while pending:
            node, parent_id = pending.pop()
            self._index[node.id] = node
            self._parents[node.id] = parent_id
            pending.extend((child, node.id) for child in node.children)

    @classmethod
    def from_nodes(
        cls,
        nodes: Iterable[CategoryNode | Mapping[str, Any]] | None,
        max_depth: int = MAX_DEPTH,
    ) -> "CategoryHierarchy":
        """Build and aggregate a snapshot from flat records.

        Args:
            nodes: Flat category records
            max_depth: Deepest allowed depth

        Returns:
            New CategoryHierarchy
        """
        records = coerce_nodes(nodes)
        result = build_tree(records, max_depth=max_depth)
        return cls(
            nodes=records,
            forest=compute_aggregates(result.forest),
            warnings=result.warnings,
            max_depth=max_depth,
        )

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._index

    def __len__(self) -> int:
        return len(self._index)

    def get(self, node_id: int) -> TreeNode | None:
        """Return the aggregated node for ``node_id`` or None."""
        return self._index.get(node_id)

    def parent_of(self, node_id: int) -> int | None:
        """Effective parent id (after orphan and cycle correction)."""
        return self._parents.get(node_id)

    def roots(self) -> list[TreeNode]:
        """Main categories."""
        return list(self.forest)

    def children_of(self, parent_id: int | None) -> list[TreeNode]:
        """Direct children of ``parent_id``; roots when it is None."""
        if parent_id is None:
            return self.roots()
        node = self._index.get(parent_id)
        return list(node.children) if node else []

    def ancestor_ids(self, node_id: int) -> list[int]:
        """Ids from the root down to (excluding) ``node_id``."""
        chain: list[int] = []
        parent_id = self._parents.get(node_id)
        while parent_id is not None:
            chain.append(parent_id)
            parent_id = self._parents.get(parent_id)
        chain.reverse()
        return chain

    def descendant_ids(self, node_id: int) -> list[int]:
        """Ids of every node below ``node_id`` in pre-order."""
        node = self._index.get(node_id)
        if node is None:
            return []
        return [descendant.id for descendant in iter_tree(node.children)]

    def subtree_height(self, node_id: int) -> int:
        """Depth of the deepest descendant relative to ``node_id``."""
        node = self._index.get(node_id)
        if node is None:
            return 0
        return max((d.depth for d in iter_tree([node])), default=node.depth) - node.depth

    def path(self, node_id: int) -> CategoryPath:
        """Locate a node as main category / category / subcategory.

        Legacy nodes deeper than depth 2 report their own id as subcategory.
        """
        if node_id not in self._index:
            return CategoryPath()
        chain = [*self.ancestor_ids(node_id), node_id]
        levels = chain[:2] + [chain[-1]] if len(chain) > 3 else chain
        return CategoryPath(
            main_category_id=levels[0],
            category_id=levels[1] if len(levels) > 1 else None,
            subcategory_id=levels[2] if len(levels) > 2 else None,
        )

    def all_ids(self) -> set[int]:
        """Every id in the forest (for "expand all")."""
        return set(self._index)

    def flat(self) -> list[CategoryRead]:
        """Derived records in the store's input order."""
        return [self._index[node.id].to_read() for node in self.nodes]

    def filter(self, query: str | None) -> FilterResult:
        """Ancestor-preserving name search over the full forest."""
        return filter_tree(self.forest, query)

    def visible(self) -> list[TreeNode]:
        """Forest as seen by public consumers (inactive subtrees removed)."""
        return visible_forest(self.forest)
