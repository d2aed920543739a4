"""Builds a bounded-depth category forest from flat parent-pointer records.

The builder is tolerant of corrupt input (e.g. legacy imports that never went
through the mutation validator): dangling parents, parent cycles and nodes
deeper than the allowed depth are reported as warnings alongside a best-effort
forest instead of failing the whole read.
"""

from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.infra.logging import get_logger
from app.schemas.category import CategoryNode, TreeNode

logger = get_logger(__name__)

# Root, sub, sub-sub.
MAX_DEPTH = 2


class WarningKind(str, Enum):
    """Kinds of defensive warnings raised while reading the hierarchy."""

    ORPHAN = "orphan"
    CYCLE = "cycle"
    DEPTH_VIOLATION = "depth_violation"


@dataclass(frozen=True)
class HierarchyWarning:
    """A problem found in the stored data that needs manual cleanup.

    Attributes:
        kind: Warning kind
        node_id: Category the warning is about
        message: Operator-facing description
        related_ids: Other categories involved (missing parent, cycle members)
    """

    kind: WarningKind
    node_id: int
    message: str
    related_ids: tuple[int, ...] = ()


@dataclass(frozen=True)
class BuildResult:
    """Forest plus the warnings collected while building it."""

    forest: list[TreeNode]
    warnings: list[HierarchyWarning] = field(default_factory=list)


def coerce_nodes(nodes: Iterable[CategoryNode | Mapping[str, Any]] | None) -> list[CategoryNode]:
    """Validate the input list and return it as CategoryNode records.

    Args:
        nodes: Category records or mappings convertible to them

    Returns:
        List of CategoryNode in input order

    Raises:
        ValueError: If nodes is None or contains duplicate ids
        pydantic.ValidationError: If a record is malformed
    """
    if nodes is None:
        raise ValueError("Category node list must not be None")

    records: list[CategoryNode] = []
    seen: set[int] = set()
    for item in nodes:
        node = item if isinstance(item, CategoryNode) else CategoryNode.model_validate(item)
        if node.id in seen:
            raise ValueError(f"Duplicate category id {node.id} in node list")
        seen.add(node.id)
        records.append(node)
    return records


def build_tree(
    nodes: Iterable[CategoryNode | Mapping[str, Any]] | None,
    max_depth: int = MAX_DEPTH,
) -> BuildResult:
    """Convert a flat category list into a rooted forest.

    Roots and siblings keep their input order. Aggregate counters on the
    returned nodes are left at zero; see ``compute_aggregates``.

    Args:
        nodes: Flat category records
        max_depth: Deepest allowed depth (roots are depth 0)

    Returns:
        BuildResult with the forest and any defensive warnings
    """
    records = coerce_nodes(nodes)
    index = {node.id: node for node in records}
    position = {node.id: i for i, node in enumerate(records)}
    warnings: list[HierarchyWarning] = []

    parents: dict[int, int | None] = {}
    for node in records:
        if node.parent_id is not None and node.parent_id not in index:
            warnings.append(
                HierarchyWarning(
                    kind=WarningKind.ORPHAN,
                    node_id=node.id,
                    message=(
                        f"Category {node.id} references missing parent "
                        f"{node.parent_id}; shown as a root"
                    ),
                    related_ids=(node.parent_id,),
                )
            )
            parents[node.id] = None
        else:
            parents[node.id] = node.parent_id

    warnings.extend(_break_cycles(records, parents, position))

    children: dict[int, list[int]] = {node.id: [] for node in records}
    roots: list[int] = []
    for node in records:
        parent_id = parents[node.id]
        if parent_id is None:
            roots.append(node.id)
        else:
            children[parent_id].append(node.id)

    # Breadth-first depths; every parent precedes its children in `order`
    depths: dict[int, int] = {}
    order: list[int] = []
    queue = deque((root_id, 0) for root_id in roots)
    while queue:
        node_id, depth = queue.popleft()
        depths[node_id] = depth
        order.append(node_id)
        if depth > max_depth:
            warnings.append(
                HierarchyWarning(
                    kind=WarningKind.DEPTH_VIOLATION,
                    node_id=node_id,
                    message=(
                        f"Category {node_id} sits at depth {depth}, "
                        f"deeper than the allowed {max_depth}"
                    ),
                )
            )
        queue.extend((child_id, depth + 1) for child_id in children[node_id])

    built: dict[int, TreeNode] = {}
    for node_id in reversed(order):
        built[node_id] = TreeNode(
            **index[node_id].model_dump(exclude={"parent_id"}),
            parent_id=parents[node_id],
            depth=depths[node_id],
            children=[built[child_id] for child_id in children[node_id]],
        )

    forest = [built[root_id] for root_id in roots]

    for warning in warnings:
        logger.warning(
            "Category hierarchy warning",
            kind=warning.kind.value,
            category_id=warning.node_id,
            related_ids=list(warning.related_ids),
            detail=warning.message,
        )

    logger.debug(
        "Category tree built",
        nodes=len(records),
        roots=len(forest),
        warnings=len(warnings),
    )
    return BuildResult(forest=forest, warnings=warnings)


def _break_cycles(
    records: list[CategoryNode],
    parents: dict[int, int | None],
    position: dict[int, int],
) -> list[HierarchyWarning]:
    """Detach one member of every parent-pointer cycle, in place.

    The detached member is the cycle member that comes first in input order;
    it becomes a root. Walks are capped at the node count.

    Args:
        records: Nodes in input order
        parents: Effective parent per node id (mutated)
        position: Input position per node id

    Returns:
        One CYCLE warning per broken cycle
    """
    warnings: list[HierarchyWarning] = []
    limit = len(records)
    grounded: set[int] = set()

    for node in records:
        path: list[int] = []
        on_path: set[int] = set()
        current: int | None = node.id
        steps = 0

        while current is not None and current not in grounded:
            if current in on_path or steps > limit:
                start = path.index(current) if current in on_path else 0
                members = path[start:]
                offender = min(members, key=lambda node_id: position[node_id])
                parents[offender] = None
                warnings.append(
                    HierarchyWarning(
                        kind=WarningKind.CYCLE,
                        node_id=offender,
                        message=(
                            f"Category {offender} is part of a parent cycle "
                            f"{' -> '.join(str(m) for m in members)}; detached as a root"
                        ),
                        related_ids=tuple(members),
                    )
                )
                break
            path.append(current)
            on_path.add(current)
            current = parents[current]
            steps += 1

        # Every node on the walked path now reaches a root.
        grounded.update(path)

    return warnings
