"""Content store - the post operations the category engine depends on.

The store is bound to the caller's session so that migrating posts during a
category delete happens inside the same transaction as the tree changes.
"""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from category_engine.infra.logging import get_logger
from category_engine.models.post import Post

logger = get_logger(__name__)


class ContentStore(Protocol):
    """Post operations used by CategoryService."""

    async def count_content_by_category(self, category_id: str) -> int: ...

    async def count_content_by_categories(self, category_ids: Iterable[str]) -> dict[str, int]: ...

    async def reassign_content(self, from_category_id: str, to_category_id: str) -> int: ...

    async def list_content_by_categories(self, category_ids: Iterable[str]) -> list[Post]: ...


class SqlContentStore:
    """ContentStore backed by the `posts` table."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def count_content_by_category(self, category_id: str) -> int:
        """Count posts whose category is exactly `category_id`."""
        result = await self._session.execute(
            select(func.count(Post.id)).where(Post.category_id == category_id)
        )
        return int(result.scalar_one())

    async def count_content_by_categories(self, category_ids: Iterable[str]) -> dict[str, int]:
        """Count direct posts for many categories in one grouped query.

        Categories without posts are present with a count of 0.
        """
        ids = list(category_ids)
        if not ids:
            return {}

        result = await self._session.execute(
            select(Post.category_id, func.count(Post.id))
            .where(Post.category_id.in_(ids))
            .group_by(Post.category_id)
        )
        counts = dict.fromkeys(ids, 0)
        counts.update({category_id: int(count) for category_id, count in result.all()})
        return counts

    async def reassign_content(self, from_category_id: str, to_category_id: str) -> int:
        """Move every post of one category to another.

        Returns:
            Number of posts moved
        """
        result = await self._session.execute(
            update(Post)
            .where(Post.category_id == from_category_id)
            .values(category_id=to_category_id)
            .execution_options(synchronize_session=False)
        )
        moved = result.rowcount or 0

        logger.info(
            "Posts reassigned",
            from_category_id=from_category_id,
            to_category_id=to_category_id,
            moved=moved,
        )
        return moved

    async def list_content_by_categories(self, category_ids: Iterable[str]) -> list[Post]:
        """List posts attached to any of the given categories, newest first."""
        ids = list(category_ids)
        if not ids:
            return []

        result = await self._session.execute(
            select(Post)
            .where(Post.category_id.in_(ids))
            .order_by(Post.published_at.desc(), Post.created_at.desc(), Post.id)
        )
        return list(result.scalars().all())
