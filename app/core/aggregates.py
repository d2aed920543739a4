"""Bottom-up rollup of product and subcategory counters."""

from collections.abc import Iterable

from app.core.traversal import rebuild_forest
from app.schemas.category import TreeNode


def compute_aggregates(forest: Iterable[TreeNode]) -> list[TreeNode]:
    """Annotate every node with its direct and total counters.

    Post-order: children are computed before their parent. The input
    forest is left untouched and new nodes are returned. Works on any
    forest, including pruned or cycle-corrected ones.

    Args:
        forest: Root nodes as produced by the tree builder

    Returns:
        New root nodes with counters filled in
    """
    return rebuild_forest(forest, _aggregate)


def _aggregate(node: TreeNode, children: list[TreeNode]) -> TreeNode:
    return node.model_copy(
        update={
            "children": children,
            "total_product_count": node.direct_product_count
            + sum(child.total_product_count for child in children),
            "total_published_product_count": node.direct_published_product_count
            + sum(child.total_published_product_count for child in children),
            "direct_subcategory_count": len(children),
            "total_subcategory_count": sum(
                1 + child.total_subcategory_count for child in children
            ),
        }
    )
