"""Business logic services."""

from app.services.category_service import (
    CategoryMutationError,
    CategoryNotFoundError,
    CategoryService,
    CategoryServiceError,
)
from app.services.category_store import (
    CategoryNotStoredError,
    CategoryStore,
    InMemoryCategoryStore,
    SqlCategoryStore,
)

__all__ = [
    "CategoryMutationError",
    "CategoryNotFoundError",
    "CategoryNotStoredError",
    "CategoryService",
    "CategoryServiceError",
    "CategoryStore",
    "InMemoryCategoryStore",
    "SqlCategoryStore",
]
