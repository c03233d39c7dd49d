"""Pydantic schemas for request/response validation."""

from category_engine.schemas.category import (
    CategoryBreadcrumb,
    CategoryCreate,
    CategoryDeleteResponse,
    CategoryMove,
    CategoryPostsResponse,
    CategoryResponse,
    CategoryUpdate,
    PostSummary,
)
from category_engine.schemas.common import ErrorResponse, HealthResponse

__all__ = [
    "ErrorResponse",
    "HealthResponse",
    "CategoryBreadcrumb",
    "CategoryCreate",
    "CategoryDeleteResponse",
    "CategoryMove",
    "CategoryPostsResponse",
    "CategoryResponse",
    "CategoryUpdate",
    "PostSummary",
]
