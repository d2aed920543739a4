"""Category endpoints.

Mirrors the admin panel's category API: flat list, main categories,
children by parent, single category, tree with search, and the validated
create / update / toggle / delete writes. Structural rejections are turned
into JSON errors by the exception handler registered in ``app.main``.
"""

from fastapi import APIRouter, Query, status

from app.api.deps import CategoryServiceDep
from app.core.mutation_validator import DeactivationAdvisory
from app.core.tree_builder import HierarchyWarning
from app.infra.logging import get_logger
from app.schemas.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryRead,
    CategoryStatusResponse,
    CategoryStatusUpdate,
    CategoryTreeResponse,
    CategoryUpdate,
    DeactivationAdvisoryRead,
    HierarchyWarningRead,
)
from app.schemas.common import ApiResponse

router = APIRouter()
logger = get_logger(__name__)


@router.get("", response_model=ApiResponse[list[CategoryRead]])
async def list_categories(service: CategoryServiceDep) -> ApiResponse[list[CategoryRead]]:
    """All categories, flat, with direct and total counters."""
    return ApiResponse(data=await service.list_categories())


@router.get("/tree", response_model=ApiResponse[CategoryTreeResponse])
async def category_tree(
    service: CategoryServiceDep,
    q: str | None = Query(default=None, max_length=200, description="Name search"),
    include_inactive: bool = Query(
        default=True, description="False hides inactive categories and their subtrees"
    ),
) -> ApiResponse[CategoryTreeResponse]:
    """Category forest, optionally searched.

    While a search is active, ``auto_expand_ids`` lists every category that
    should be expanded so no match is hidden behind a collapsed parent.
    """
    result, hierarchy = await service.get_tree(query=q, include_inactive=include_inactive)
    return ApiResponse(
        data=CategoryTreeResponse(
            categories=result.forest,
            auto_expand_ids=sorted(result.auto_expand_ids),
            warnings=[_warning_read(w) for w in hierarchy.warnings],
            query=q,
        )
    )


@router.get("/main", response_model=ApiResponse[list[CategoryRead]])
async def main_categories(service: CategoryServiceDep) -> ApiResponse[list[CategoryRead]]:
    """Root categories."""
    return ApiResponse(data=await service.list_main_categories())


@router.get("/by-parent/{parent_id}", response_model=ApiResponse[list[CategoryRead]])
async def categories_by_parent(
    parent_id: int, service: CategoryServiceDep
) -> ApiResponse[list[CategoryRead]]:
    """Direct children of a category."""
    return ApiResponse(data=await service.list_by_parent(parent_id))


@router.get("/{category_id}", response_model=ApiResponse[CategoryDetail])
async def get_category(
    category_id: int, service: CategoryServiceDep
) -> ApiResponse[CategoryDetail]:
    """One category with its ancestor chain and main/category/subcategory path."""
    node, hierarchy = await service.get_category(category_id)
    return ApiResponse(
        data=CategoryDetail(
            category=node.to_read(),
            ancestor_ids=hierarchy.ancestor_ids(category_id),
            path=hierarchy.path(category_id),
        )
    )


@router.post(
    "",
    response_model=ApiResponse[CategoryRead],
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate, service: CategoryServiceDep
) -> ApiResponse[CategoryRead]:
    """Create a category."""
    node = await service.create_category(payload)
    return ApiResponse(data=node.to_read(), message="Category created successfully")


@router.put("/{category_id}", response_model=ApiResponse[CategoryRead])
async def update_category(
    category_id: int, payload: CategoryUpdate, service: CategoryServiceDep
) -> ApiResponse[CategoryRead]:
    """Rename, edit details or move a category."""
    node = await service.update_category(category_id, payload)
    return ApiResponse(data=node.to_read(), message="Category updated successfully")


@router.patch("/{category_id}", response_model=ApiResponse[CategoryStatusResponse])
async def set_category_status(
    category_id: int, payload: CategoryStatusUpdate, service: CategoryServiceDep
) -> ApiResponse[CategoryStatusResponse]:
    """Activate or deactivate a category.

    Deactivation is never blocked; the response carries an advisory listing
    what is now hidden from the storefront.
    """
    node, advisory = await service.set_active(category_id, payload.is_active)
    return ApiResponse(
        data=CategoryStatusResponse(
            category=node.to_read(),
            advisory=_advisory_read(advisory) if advisory else None,
        ),
        message="Category activated" if payload.is_active else "Category deactivated",
    )


@router.delete("/{category_id}", response_model=ApiResponse[None])
async def delete_category(category_id: int, service: CategoryServiceDep) -> ApiResponse[None]:
    """Delete an empty category (no products, no subcategories)."""
    await service.delete_category(category_id)
    return ApiResponse(message="Category deleted")


def _warning_read(warning: HierarchyWarning) -> HierarchyWarningRead:
    return HierarchyWarningRead(
        kind=warning.kind.value,
        node_id=warning.node_id,
        message=warning.message,
        related_ids=list(warning.related_ids),
    )


def _advisory_read(advisory: DeactivationAdvisory) -> DeactivationAdvisoryRead:
    return DeactivationAdvisoryRead(
        category_id=advisory.category_id,
        hidden_category_ids=list(advisory.hidden_category_ids),
        hidden_product_count=advisory.hidden_product_count,
        hidden_published_product_count=advisory.hidden_published_product_count,
        message=advisory.message,
    )
