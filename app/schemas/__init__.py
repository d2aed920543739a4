"""Pydantic schemas for request/response validation."""

from app.schemas.category import (
    CategoryCreate,
    CategoryDetail,
    CategoryNode,
    CategoryPath,
    CategoryRead,
    CategoryStatusResponse,
    CategoryStatusUpdate,
    CategoryTreeResponse,
    CategoryUpdate,
    DeactivationAdvisoryRead,
    HierarchyWarningRead,
    TreeNode,
)
from app.schemas.common import ApiResponse, ErrorResponse, HealthResponse

__all__ = [
    "ApiResponse",
    "ErrorResponse",
    "HealthResponse",
    "CategoryCreate",
    "CategoryDetail",
    "CategoryNode",
    "CategoryPath",
    "CategoryRead",
    "CategoryStatusResponse",
    "CategoryStatusUpdate",
    "CategoryTreeResponse",
    "CategoryUpdate",
    "DeactivationAdvisoryRead",
    "HierarchyWarningRead",
    "TreeNode",
]
