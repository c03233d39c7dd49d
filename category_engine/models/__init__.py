"""SQLAlchemy models for the category engine.

`categories` is owned by the engine; `posts` and `activity_logs` back the
content-store and audit collaborators.
"""

from category_engine.models.activity_log import ActivityLog
from category_engine.models.base import Base, TimestampMixin
from category_engine.models.category import Category
from category_engine.models.post import Post

__all__ = [
    "Base",
    "TimestampMixin",
    "ActivityLog",
    "Category",
    "Post",
]
