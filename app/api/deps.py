"""FastAPI dependencies for dependency injection.

Provides:
- Node store selected by configuration
- Process-wide category service (shares the write lock)
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from app.config import settings
from app.infra.logging import get_logger
from app.services.category_service import CategoryService
from app.services.category_store import (
    CategoryStore,
    InMemoryCategoryStore,
    SqlCategoryStore,
)

logger = get_logger(__name__)


def build_category_store() -> CategoryStore:
    """Create the node store configured by ``CATEGORY_STORE``."""
    if settings.category_store == "memory":
        logger.warning("Using in-memory category store; data is not persisted")
        return InMemoryCategoryStore()
    return SqlCategoryStore()


@lru_cache
def get_category_service() -> CategoryService:
    """Get the shared category service.

    All requests must use the same instance so writes are serialized.
    """
    return CategoryService(
        store=build_category_store(),
        max_depth=settings.category_max_depth,
    )


# Type aliases for cleaner annotations
CategoryServiceDep = Annotated[CategoryService, Depends(get_category_service)]
