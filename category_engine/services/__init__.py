"""Business logic services."""

from category_engine.services.activity import (
    ActivityAction,
    NullActivityRecorder,
    SqlActivityRecorder,
)
from category_engine.services.cache import (
    NullCategoryCache,
    RedisCategoryCache,
    get_category_cache,
)
from category_engine.services.category_service import CategoryDeletion, CategoryService
from category_engine.services.content_store import SqlContentStore

__all__ = [
    "ActivityAction",
    "CategoryDeletion",
    "CategoryService",
    "NullActivityRecorder",
    "NullCategoryCache",
    "RedisCategoryCache",
    "SqlActivityRecorder",
    "SqlContentStore",
    "get_category_cache",
]
