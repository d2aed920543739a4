"""Node stores - persistence for flat category records.

The hierarchy engine never does I/O itself. A store lists the flat records
(with per-category product counts) and applies writes that the mutation
validator has already accepted.
"""

from collections.abc import Callable, Iterable, Mapping
from contextlib import AbstractAsyncContextManager
from typing import Any, Protocol

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.tree_builder import coerce_nodes
from app.infra.database import get_db_session
from app.infra.logging import get_logger
from app.models.category import Category
from app.models.product import Product
from app.schemas.category import CategoryNode

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class CategoryNotStoredError(LookupError):
    """Raised when a write targets a category the store does not hold."""

    def __init__(self, category_id: int) -> None:
        self.category_id = category_id
        super().__init__(f"Category {category_id} is not stored")


class CategoryStore(Protocol):
    """Persistence collaborator for category records."""

    async def list_nodes(self) -> list[CategoryNode]: ...

    async def create(self, node: CategoryNode) -> CategoryNode: ...

    async def update(self, node: CategoryNode) -> CategoryNode: ...

    async def delete(self, node_id: int) -> None: ...


class InMemoryCategoryStore:
    """Dict-backed store for local development and tests.

    Product counts are not derived from products here; set them with
    ``set_product_counts``.
    """

    def __init__(self, nodes: Iterable[CategoryNode | Mapping[str, Any]] = ()) -> None:
        self._nodes: dict[int, CategoryNode] = {
            node.id: node for node in coerce_nodes(nodes)
        }

    async def list_nodes(self) -> list[CategoryNode]:
        """Return all records in insertion order."""
        return list(self._nodes.values())

    async def create(self, node: CategoryNode) -> CategoryNode:
        """Store a new record, assigning a fresh id if the given one is taken."""
        node_id = node.id
        if node_id in self._nodes:
            node_id = max(self._nodes) + 1
        stored = node.model_copy(
            update={
                "id": node_id,
                "direct_product_count": 0,
                "direct_published_product_count": 0,
            }
        )
        self._nodes[node_id] = stored
        return stored

    async def update(self, node: CategoryNode) -> CategoryNode:
        """Replace a record, keeping the stored product counts."""
        current = self._nodes.get(node.id)
        if current is None:
            raise CategoryNotStoredError(node.id)
        stored = node.model_copy(
            update={
                "direct_product_count": current.direct_product_count,
                "direct_published_product_count": current.direct_published_product_count,
            }
        )
        self._nodes[node.id] = stored
        return stored

    async def delete(self, node_id: int) -> None:
        """Remove a record."""
        if node_id not in self._nodes:
            raise CategoryNotStoredError(node_id)
        del self._nodes[node_id]

    def set_product_counts(self, node_id: int, total: int, published: int = 0) -> None:
        """Set the direct product counts of a stored record.

        Args:
            node_id: Category id
            total: Products assigned directly (all statuses)
            published: Published products assigned directly

        Raises:
            CategoryNotStoredError: If the category is not stored
            ValueError: If counts are negative or published exceeds total
        """
        current = self._nodes.get(node_id)
        if current is None:
            raise CategoryNotStoredError(node_id)
        if total < 0 or published < 0 or published > total:
            raise ValueError(
                f"Invalid product counts total={total} published={published}"
            )
        self._nodes[node_id] = current.model_copy(
            update={
                "direct_product_count": total,
                "direct_published_product_count": published,
            }
        )


class SqlCategoryStore:
    """SQLAlchemy store over the ``categories`` and ``products`` tables."""

    def __init__(self, session_factory: SessionFactory = get_db_session) -> None:
        """Initialize store.

        Args:
            session_factory: Callable returning an async session context
                manager that commits on exit
        """
        self._session_factory = session_factory

    async def list_nodes(self) -> list[CategoryNode]:
        """Load every category with its direct product counts.

        Categories are returned in id order, which is creation order.
        """
        published = func.coalesce(
            func.sum(case((Product.is_published.is_(True), 1), else_=0)), 0
        )
        stmt = (
            select(
                Category,
                func.count(Product.id).label("product_count"),
                published.label("published_product_count"),
            )
            .outerjoin(Product, Product.category_id == Category.id)
            .group_by(Category.id)
            .order_by(Category.id)
        )

        async with self._session_factory() as session:
            result = await session.execute(stmt)
            rows = result.all()

        logger.debug("Categories loaded from database", count=len(rows))
        return [
            _to_node(category, product_count, published_count)
            for category, product_count, published_count in rows
        ]

    async def create(self, node: CategoryNode) -> CategoryNode:
        """Insert a category; the database assigns the id."""
        async with self._session_factory() as session:
            row = Category(
                name=node.name,
                description=node.description,
                image=node.image,
                parent_id=node.parent_id,
                is_active=node.is_active,
                is_controlled=node.is_controlled,
            )
            session.add(row)
            await session.flush()
            created = _to_node(row, 0, 0)

        logger.info("Category inserted", category_id=created.id)
        return created

    async def update(self, node: CategoryNode) -> CategoryNode:
        """Write the editable columns of an existing category."""
        async with self._session_factory() as session:
            row = await session.get(Category, node.id)
            if row is None:
                raise CategoryNotStoredError(node.id)
            row.name = node.name
            row.description = node.description
            row.image = node.image
            row.parent_id = node.parent_id
            row.is_active = node.is_active
            row.is_controlled = node.is_controlled
            await session.flush()

        logger.info("Category updated", category_id=node.id)
        return node

    async def delete(self, node_id: int) -> None:
        """Delete a category row."""
        async with self._session_factory() as session:
            row = await session.get(Category, node_id)
            if row is None:
                raise CategoryNotStoredError(node_id)
            await session.delete(row)

        logger.info("Category deleted", category_id=node_id)


def _to_node(row: Category, product_count: int | None, published_count: int | None) -> CategoryNode:
    return CategoryNode(
        id=row.id,
        name=row.name,
        parent_id=row.parent_id,
        is_active=row.is_active if row.is_active is not None else True,
        is_controlled=bool(row.is_controlled),
        description=row.description,
        image=row.image,
        direct_product_count=int(product_count or 0),
        direct_published_product_count=int(published_count or 0),
    )
