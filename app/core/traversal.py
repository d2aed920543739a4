"""Stack-based walks over a category forest.

Legacy data can chain categories far deeper than the allowed depth, so no
walk here recurses per level.
"""

from collections.abc import Callable, Iterable, Iterator

from app.schemas.category import TreeNode

# Receives the original node and its already rebuilt children; None drops it
Rebuild = Callable[[TreeNode, list[TreeNode]], TreeNode | None]


def iter_tree(forest: Iterable[TreeNode]) -> Iterator[TreeNode]:
    """Yield every node of the forest in pre-order."""
    stack = list(reversed(list(forest)))
    while stack:
        node = stack.pop()
        yield node
        stack.extend(reversed(node.children))


def collect_ids(forest: Iterable[TreeNode]) -> set[int]:
    """Return the ids of all nodes in the forest."""
    return {node.id for node in iter_tree(forest)}


def rebuild_forest(forest: Iterable[TreeNode], rebuild: Rebuild) -> list[TreeNode]:
    """Rebuild a forest bottom-up.

    Children are rebuilt before their parent. ``rebuild`` gets each node
    together with the surviving rebuilt children and returns the new node,
    or None to drop it (and with it the whole subtree).

    Args:
        forest: Root nodes
        rebuild: Per-node rebuild function

    Returns:
        Surviving rebuilt roots in input order
    """
    roots = list(forest)
    results: dict[int, TreeNode | None] = {}
    for node in reversed(list(iter_tree(roots))):
        children = [
            kept
            for kept in (results[id(child)] for child in node.children)
            if kept is not None
        ]
        results[id(node)] = rebuild(node, children)
    return [kept for kept in (results[id(root)] for root in roots) if kept is not None]
