"""Name search and visibility pruning over a built category forest.

Both operations are pure: they never touch the input nodes and hold no
expand/collapse state. Callers own that state and merge ``auto_expand_ids``
into it while a search is active.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from app.core.aggregates import compute_aggregates
from app.core.traversal import collect_ids, iter_tree, rebuild_forest
from app.schemas.category import TreeNode

__all__ = ["FilterResult", "collect_ids", "filter_tree", "iter_tree", "visible_forest"]


@dataclass(frozen=True)
class FilterResult:
    """Filtered forest and the ids the caller should expand.

    Attributes:
        forest: Matching nodes plus the ancestor chain of every match
        auto_expand_ids: Every id present in ``forest``; empty for an empty query
    """

    forest: list[TreeNode]
    auto_expand_ids: frozenset[int] = frozenset()

    def expanded(self, manual_ids: Iterable[int] = ()) -> frozenset[int]:
        """Union the caller's manual expand state with the search expansion."""
        return frozenset(manual_ids) | self.auto_expand_ids


def filter_tree(forest: list[TreeNode], query: str | None) -> FilterResult:
    """Prune the forest to nodes whose name contains ``query``.

    Matching is a case-insensitive substring test on the trimmed query.
    A matching node keeps its whole unfiltered subtree. A non-matching node
    survives only if some descendant matches, and then keeps just the
    surviving children.

    Args:
        forest: Built category forest
        query: Search text; empty or blank leaves the forest unchanged

    Returns:
        FilterResult with the pruned forest and auto-expand ids
    """
    needle = (query or "").strip().lower()
    if not needle:
        return FilterResult(forest=list(forest))

    def keep(node: TreeNode, surviving: list[TreeNode]) -> TreeNode | None:
        if needle in node.name.lower():
            return node
        if surviving:
            return node.model_copy(update={"children": surviving})
        return None

    filtered = rebuild_forest(forest, keep)
    return FilterResult(forest=filtered, auto_expand_ids=frozenset(collect_ids(filtered)))


def visible_forest(forest: Iterable[TreeNode]) -> list[TreeNode]:
    """Drop inactive categories together with everything below them.

    Counters are recomputed on the pruned forest, so totals only include
    products that remain publicly reachable.

    Args:
        forest: Built category forest

    Returns:
        New forest containing only effectively active categories
    """
    return compute_aggregates(rebuild_forest(forest, _keep_active))


def _keep_active(node: TreeNode, children: list[TreeNode]) -> TreeNode | None:
    if not node.is_active:
        return None
    return node.model_copy(update={"children": children})
