"""Category service - orchestrates the hierarchy engine and the node store.

Reads rebuild the hierarchy from a fresh store snapshot. Writes are
serialized through a single lock: inside it the latest snapshot is read,
validated, persisted and the hierarchy rebuilt before the result is
returned, so stale aggregates are never served.
"""

import asyncio

from app.core.filter_engine import FilterResult, filter_tree
from app.core.hierarchy import CategoryHierarchy
from app.core.mutation_validator import (
    DeactivationAdvisory,
    MutationResult,
    MutationValidator,
    Rejection,
    RejectionKind,
)
from app.core.tree_builder import MAX_DEPTH
from app.infra.logging import get_logger
from app.schemas.category import (
    CategoryCreate,
    CategoryRead,
    CategoryUpdate,
    TreeNode,
)
from app.services.category_store import CategoryStore

logger = get_logger(__name__)


class CategoryServiceError(Exception):
    """Base class for category errors surfaced to API callers."""

    def __init__(self, rejection: Rejection) -> None:
        self.rejection = rejection
        self.kind = rejection.kind
        self.message = rejection.message
        super().__init__(rejection.message)


class CategoryNotFoundError(CategoryServiceError):
    """Raised when a category id does not exist."""

    def __init__(self, category_id: int) -> None:
        super().__init__(
            Rejection(
                kind=RejectionKind.NOT_FOUND,
                message=f"Category {category_id} does not exist",
                node_id=category_id,
            )
        )


class CategoryMutationError(CategoryServiceError):
    """Raised when the mutation validator refuses a write."""


class CategoryService:
    """Category reads and validated writes.

    One instance should be shared per process so that all writes go
    through the same lock.
    """

    def __init__(
        self,
        store: CategoryStore,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        """Initialize service.

        Args:
            store: Node store holding the flat records
            max_depth: Deepest allowed category depth
        """
        self.store = store
        self.max_depth = max_depth
        self.validator = MutationValidator(max_depth=max_depth)
        self._write_lock = asyncio.Lock()

    # =========================================================================
    # Reads
    # =========================================================================

    async def get_hierarchy(self) -> CategoryHierarchy:
        """Build the hierarchy from the current store snapshot."""
        nodes = await self.store.list_nodes()
        hierarchy = CategoryHierarchy.from_nodes(nodes, max_depth=self.max_depth)
        if hierarchy.warnings:
            logger.warning(
                "Category data needs cleanup",
                warnings=len(hierarchy.warnings),
                kinds=sorted({w.kind.value for w in hierarchy.warnings}),
            )
        return hierarchy

    async def list_categories(self) -> list[CategoryRead]:
        """All categories, flat, with derived counters."""
        hierarchy = await self.get_hierarchy()
        return hierarchy.flat()

    async def get_tree(
        self, query: str | None = None, include_inactive: bool = True
    ) -> tuple[FilterResult, CategoryHierarchy]:
        """Forest for display, optionally searched and restricted to visible nodes.

        Args:
            query: Name search; empty returns the whole forest
            include_inactive: False drops inactive subtrees (storefront view)

        Returns:
            Tuple of (filter result, hierarchy snapshot it was built from)
        """
        hierarchy = await self.get_hierarchy()
        forest = hierarchy.forest if include_inactive else hierarchy.visible()
        result = filter_tree(forest, query)
        logger.debug(
            "Category tree served",
            query=query,
            include_inactive=include_inactive,
            roots=len(result.forest),
        )
        return result, hierarchy

    async def get_category(self, category_id: int) -> tuple[TreeNode, CategoryHierarchy]:
        """Return one category and the hierarchy snapshot it came from.

        Raises:
            CategoryNotFoundError: If the id does not exist
        """
        hierarchy = await self.get_hierarchy()
        node = hierarchy.get(category_id)
        if node is None:
            raise CategoryNotFoundError(category_id)
        return node, hierarchy

    async def list_main_categories(self) -> list[CategoryRead]:
        """Root categories."""
        hierarchy = await self.get_hierarchy()
        return [node.to_read() for node in hierarchy.roots()]

    async def list_by_parent(self, parent_id: int) -> list[CategoryRead]:
        """Direct children of ``parent_id``.

        Raises:
            CategoryNotFoundError: If the parent does not exist
        """
        hierarchy = await self.get_hierarchy()
        if parent_id not in hierarchy:
            raise CategoryNotFoundError(parent_id)
        return [node.to_read() for node in hierarchy.children_of(parent_id)]

    # =========================================================================
    # Writes
    # =========================================================================

    async def create_category(self, payload: CategoryCreate) -> TreeNode:
        """Validate and store a new category.

        Raises:
            CategoryMutationError: If the validator refuses the write
        """
        async with self._write_lock:
            nodes = await self.store.list_nodes()
            result = self._check(self.validator.create(nodes, payload), "create")
            created = await self.store.create(result.node)
            return await self._rebuilt(created.id, "create")

    async def update_category(self, category_id: int, payload: CategoryUpdate) -> TreeNode:
        """Validate and store an edit (rename, details, optional move).

        Raises:
            CategoryNotFoundError: If the id does not exist
            CategoryMutationError: If the validator refuses the write
        """
        async with self._write_lock:
            nodes = await self.store.list_nodes()
            result = self._check(
                self.validator.update(nodes, category_id, payload), "update"
            )
            await self.store.update(result.node)
            return await self._rebuilt(category_id, "update")

    async def delete_category(self, category_id: int) -> None:
        """Validate and delete a category.

        Raises:
            CategoryNotFoundError: If the id does not exist
            CategoryMutationError: If the category has products or subcategories
        """
        async with self._write_lock:
            nodes = await self.store.list_nodes()
            self._check(self.validator.delete(nodes, category_id), "delete")
            await self.store.delete(category_id)
            logger.info("Category mutation applied", operation="delete", category_id=category_id)

    async def set_active(
        self, category_id: int, is_active: bool
    ) -> tuple[TreeNode, DeactivationAdvisory | None]:
        """Toggle the active flag.

        Returns:
            Tuple of (updated node, advisory when the category was deactivated)

        Raises:
            CategoryNotFoundError: If the id does not exist
        """
        async with self._write_lock:
            nodes = await self.store.list_nodes()
            result = self._check(
                self.validator.set_active(nodes, category_id, is_active), "set_active"
            )
            await self.store.update(result.node)
            if result.advisory is not None:
                logger.info(
                    "Category deactivated",
                    category_id=category_id,
                    hidden_categories=len(result.advisory.hidden_category_ids),
                    hidden_products=result.advisory.hidden_product_count,
                )
            node = await self._rebuilt(category_id, "set_active")
            return node, result.advisory

    # =========================================================================
    # Helpers
    # =========================================================================

    def _check(self, result: MutationResult, operation: str) -> MutationResult:
        """Turn a rejection into an exception at the service boundary."""
        if result.ok:
            return result

        rejection = result.rejection
        logger.info(
            "Category mutation rejected",
            operation=operation,
            kind=rejection.kind.value,
            category_id=rejection.node_id,
            reason=rejection.message,
        )
        if rejection.kind is RejectionKind.NOT_FOUND:
            raise CategoryNotFoundError(rejection.node_id)
        raise CategoryMutationError(rejection)

    async def _rebuilt(self, category_id: int, operation: str) -> TreeNode:
        """Re-read the store and return the freshly aggregated node."""
        hierarchy = await self.get_hierarchy()
        node = hierarchy.get(category_id)
        if node is None:
            raise CategoryNotFoundError(category_id)
        logger.info("Category mutation applied", operation=operation, category_id=category_id)
        return node
