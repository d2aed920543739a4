"""Structural checks for category writes.

Every operation receives the current full node list and returns a
``MutationResult``: either the updated node list or a named rejection.
Rejections are user-correctable conditions ("reassign products first") and
are returned, never raised. Nothing is written here; the caller persists
an accepted result.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.core.hierarchy import CategoryHierarchy
from app.core.tree_builder import MAX_DEPTH, coerce_nodes
from app.schemas.category import CategoryCreate, CategoryNode, CategoryUpdate

NodeList = Iterable[CategoryNode | Mapping[str, Any]]


class RejectionKind(str, Enum):
    """Reasons a write is refused."""

    DEPTH_EXCEEDED = "depth_exceeded"
    INVALID_NAME = "invalid_name"
    CYCLIC_PARENT = "cyclic_parent"
    HAS_PRODUCTS = "has_products"
    HAS_SUBCATEGORIES = "has_subcategories"
    NOT_FOUND = "not_found"
    PARENT_NOT_FOUND = "parent_not_found"


@dataclass(frozen=True)
class Rejection:
    """A refused write with a user-facing explanation."""

    kind: RejectionKind
    message: str
    node_id: int | None = None


@dataclass(frozen=True)
class DeactivationAdvisory:
    """Side effects of deactivating a category.

    Deactivation is always allowed, but it hides the category, all of its
    subcategories and their products from the public storefront.
    """

    category_id: int
    hidden_category_ids: tuple[int, ...]
    hidden_product_count: int
    hidden_published_product_count: int
    message: str


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a validated write.

    Attributes:
        nodes: Updated full node list (empty when rejected)
        node: Created, updated or deleted record
        rejection: Set when the write was refused
        advisory: Set when the write deactivates a category
    """

    nodes: list[CategoryNode] = field(default_factory=list)
    node: CategoryNode | None = None
    rejection: Rejection | None = None
    advisory: DeactivationAdvisory | None = None

    @property
    def ok(self) -> bool:
        return self.rejection is None

    @classmethod
    def accepted(
        cls,
        nodes: list[CategoryNode],
        node: CategoryNode,
        advisory: DeactivationAdvisory | None = None,
    ) -> "MutationResult":
        return cls(nodes=nodes, node=node, advisory=advisory)

    @classmethod
    def rejected(
        cls, kind: RejectionKind, message: str, node_id: int | None = None
    ) -> "MutationResult":
        return cls(rejection=Rejection(kind=kind, message=message, node_id=node_id))


class MutationValidator:
    """Validates create, update, reparent, delete and activation writes.

    Stateless between calls. Run it against the latest snapshot right
    before committing a write.

    Usage:
        validator = MutationValidator(max_depth=2)
        result = validator.delete(await store.list_nodes(), node_id=2)
        if not result.ok:
            raise CategoryMutationError(result.rejection)
    """

    def __init__(self, max_depth: int = MAX_DEPTH) -> None:
        """Initialize validator.

        Args:
            max_depth: Deepest allowed depth (roots are depth 0)
        """
        self.max_depth = max_depth

    # =========================================================================
    # Operations
    # =========================================================================

    def create(self, nodes: NodeList, payload: CategoryCreate) -> MutationResult:
        """Validate a new category.

        The new record gets a provisional id one above the current maximum;
        the store may assign its own.

        Args:
            nodes: Current node list
            payload: Create payload

        Returns:
            Accepted result with the new record appended, or a rejection
        """
        records = coerce_nodes(nodes)
        name = _clean_name(payload.name)
        if not name:
            return MutationResult.rejected(
                RejectionKind.INVALID_NAME, "Category name is required"
            )

        if payload.parent_id is not None:
            hierarchy = CategoryHierarchy.from_nodes(records, max_depth=self.max_depth)
            parent = hierarchy.get(payload.parent_id)
            if parent is None:
                return MutationResult.rejected(
                    RejectionKind.PARENT_NOT_FOUND,
                    f"Parent category {payload.parent_id} does not exist",
                )
            if parent.depth >= self.max_depth:
                return MutationResult.rejected(
                    RejectionKind.DEPTH_EXCEEDED,
                    f'Cannot add a subcategory under "{parent.name}". '
                    f"Categories can be at most {self.max_depth + 1} levels deep.",
                    node_id=parent.id,
                )

        node = CategoryNode(
            id=max((record.id for record in records), default=0) + 1,
            name=name,
            parent_id=payload.parent_id,
            is_active=payload.is_active,
            is_controlled=payload.is_controlled,
            description=payload.description,
            image=payload.image,
        )
        return MutationResult.accepted([*records, node], node)

    def update(
        self, nodes: NodeList, node_id: int, payload: CategoryUpdate
    ) -> MutationResult:
        """Validate an edit (rename, details, optional move).

        Only fields explicitly set on the payload are applied. A changed
        ``parent_id`` goes through the same checks as ``reparent``.

        Args:
            nodes: Current node list
            node_id: Category to edit
            payload: Update payload

        Returns:
            Accepted result with the edited record, or a rejection
        """
        records = coerce_nodes(nodes)
        record = _find(records, node_id)
        if record is None:
            return _not_found(node_id)

        changes: dict[str, Any] = {}
        fields = payload.model_fields_set
        if "name" in fields:
            name = _clean_name(payload.name)
            if not name:
                return MutationResult.rejected(
                    RejectionKind.INVALID_NAME, "Category name is required", node_id=node_id
                )
            changes["name"] = name
        if "description" in fields:
            changes["description"] = payload.description
        if "image" in fields:
            changes["image"] = payload.image
        if "is_controlled" in fields and payload.is_controlled is not None:
            changes["is_controlled"] = payload.is_controlled

        if payload.moves and payload.parent_id != record.parent_id:
            moved = self.reparent(records, node_id, payload.parent_id)
            if not moved.ok:
                return moved
            records = moved.nodes
            record = moved.node

        updated = record.model_copy(update=changes)
        return MutationResult.accepted(_replace(records, updated), updated)

    def reparent(
        self, nodes: NodeList, node_id: int, new_parent_id: int | None
    ) -> MutationResult:
        """Validate moving a category (and its subtree) under a new parent.

        The whole subtree must stay within the depth limit: the moved node
        lands at ``parent.depth + 1`` (0 for a move to the top level) and its
        deepest descendant ``subtree_height`` levels below that.

        Args:
            nodes: Current node list
            node_id: Category to move
            new_parent_id: Target parent, None to make it a main category

        Returns:
            Accepted result with the moved record, or a rejection
        """
        records = coerce_nodes(nodes)
        record = _find(records, node_id)
        if record is None:
            return _not_found(node_id)

        hierarchy = CategoryHierarchy.from_nodes(records, max_depth=self.max_depth)
        new_depth = 0
        parent = None
        if new_parent_id is not None:
            parent = hierarchy.get(new_parent_id)
            if parent is None:
                return MutationResult.rejected(
                    RejectionKind.PARENT_NOT_FOUND,
                    f"Parent category {new_parent_id} does not exist",
                    node_id=node_id,
                )
            if new_parent_id == node_id or new_parent_id in hierarchy.descendant_ids(node_id):
                return MutationResult.rejected(
                    RejectionKind.CYCLIC_PARENT,
                    f'Cannot move "{record.name}" under itself or one of its own subcategories.',
                    node_id=node_id,
                )
            new_depth = parent.depth + 1

        height = hierarchy.subtree_height(node_id)
        if new_depth + height > self.max_depth:
            target = f'"{parent.name}"' if parent is not None else "the top level"
            return MutationResult.rejected(
                RejectionKind.DEPTH_EXCEEDED,
                f'Cannot move "{record.name}" under {target}. Its subcategories would be '
                f"nested deeper than {self.max_depth + 1} levels.",
                node_id=node_id,
            )

        moved = record.model_copy(update={"parent_id": new_parent_id})
        return MutationResult.accepted(_replace(records, moved), moved)

    def delete(self, nodes: NodeList, node_id: int) -> MutationResult:
        """Validate removing a category.

        Only empty leaves can be deleted: products and subcategories must be
        reassigned or removed first. Products are checked before children.

        Args:
            nodes: Current node list
            node_id: Category to delete

        Returns:
            Accepted result without the record, or a rejection
        """
        records = coerce_nodes(nodes)
        record = _find(records, node_id)
        if record is None:
            return _not_found(node_id)

        count = record.direct_product_count
        if count > 0:
            return MutationResult.rejected(
                RejectionKind.HAS_PRODUCTS,
                f'Cannot delete "{record.name}". It has {count} '
                f"product{'s' if count != 1 else ''} assigned to it. "
                "Please reassign or remove the products first.",
                node_id=node_id,
            )
        if any(other.parent_id == node_id for other in records):
            return MutationResult.rejected(
                RejectionKind.HAS_SUBCATEGORIES,
                f'Cannot delete "{record.name}". It has subcategories. '
                "Please delete the subcategories first.",
                node_id=node_id,
            )

        remaining = [other for other in records if other.id != node_id]
        return MutationResult.accepted(remaining, record)

    def set_active(self, nodes: NodeList, node_id: int, is_active: bool) -> MutationResult:
        """Validate an activation toggle.

        Always permitted. Switching an active category off attaches a
        ``DeactivationAdvisory`` describing what disappears from the storefront.

        Args:
            nodes: Current node list
            node_id: Category to toggle
            is_active: New state

        Returns:
            Accepted result (with advisory when deactivating), or NOT_FOUND
        """
        records = coerce_nodes(nodes)
        record = _find(records, node_id)
        if record is None:
            return _not_found(node_id)

        advisory = None
        if record.is_active and not is_active:
            hierarchy = CategoryHierarchy.from_nodes(records, max_depth=self.max_depth)
            tree_node = hierarchy.get(node_id)
            advisory = DeactivationAdvisory(
                category_id=node_id,
                hidden_category_ids=(node_id, *hierarchy.descendant_ids(node_id)),
                hidden_product_count=tree_node.total_product_count,
                hidden_published_product_count=tree_node.total_published_product_count,
                message=(
                    f'Deactivating "{record.name}" will hide it and all subcategories '
                    "and products under it from the public storefront."
                ),
            )

        updated = record.model_copy(update={"is_active": is_active})
        return MutationResult.accepted(_replace(records, updated), updated, advisory)


def _clean_name(name: str | None) -> str:
    return (name or "").strip()


def _find(records: list[CategoryNode], node_id: int) -> CategoryNode | None:
    return next((record for record in records if record.id == node_id), None)


def _replace(records: list[CategoryNode], updated: CategoryNode) -> list[CategoryNode]:
    return [updated if record.id == updated.id else record for record in records]


def _not_found(node_id: int) -> MutationResult:
    return MutationResult.rejected(
        RejectionKind.NOT_FOUND, f"Category {node_id} does not exist", node_id=node_id
    )
