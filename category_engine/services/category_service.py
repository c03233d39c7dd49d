"""Category service - transactional orchestration of the category tree.

Every mutation follows the same read-validate-write shape inside one
transaction:

1. Load a locked snapshot of all categories
2. Run the pure tree/validation functions against it
3. Write the flat rows, commit
4. Invalidate cached category views and record the activity

Validation failures raise before anything is written, so a rejected
mutation leaves the store untouched. Store failures surface as
CategoryStoreError.
"""

from __future__ import annotations

import re
from collections.abc import AsyncGenerator, Callable, Mapping
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from category_engine.core.errors import (
    CategoryNotFoundError,
    CategoryStoreError,
    CategoryValidationError,
    CycleDetectedError,
    DepthExceededError,
    DuplicateNameError,
    DuplicateSlugError,
    HasAttachedContentError,
    InvalidReassignTargetError,
)
from category_engine.core.tree_ops import (
    CategoryNode,
    build_tree,
    get_ancestors,
    get_descendants,
)
from category_engine.core.validation import (
    MAX_CATEGORY_DEPTH,
    calculate_depth,
    validate_depth,
    validate_no_cycle,
)
from category_engine.infra.database import get_db_session
from category_engine.infra.logging import get_logger
from category_engine.models.category import Category
from category_engine.models.post import Post
from category_engine.services.activity import (
    ActivityAction,
    ActivityRecorder,
    NullActivityRecorder,
)
from category_engine.services.cache import CategoryCacheInvalidator, NullCategoryCache
from category_engine.services.content_store import ContentStore, SqlContentStore

logger = get_logger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]
ContentStoreFactory = Callable[[AsyncSession], ContentStore]

UPDATABLE_FIELDS = frozenset({"name", "slug", "description"})

# Transaction-scoped advisory lock key shared by every tree mutation
CATEGORY_TREE_LOCK_KEY = 7_310_512


@dataclass(frozen=True)
class CategoryDeletion:
    """Outcome of a delete.

    Attributes:
        category_id: Deleted category
        former_parent_id: Parent the children were promoted to
        promoted_child_ids: Direct children re-parented by the delete
        reassigned_posts: Posts migrated to the reassignment target
    """

    category_id: str
    former_parent_id: str | None
    promoted_child_ids: list[str] = field(default_factory=list)
    reassigned_posts: int = 0


def generate_slug(name: str) -> str:
    """Derive a URL-safe slug from a display name.

    Example:
        generate_slug("Web Development!")  # "web-development"
    """
    slug = name.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def to_node(category: Category, post_count: int | None = None) -> CategoryNode:
    """Convert an ORM row into a detached CategoryNode."""
    return CategoryNode(
        id=category.id,
        name=category.name,
        slug=category.slug,
        description=category.description,
        parent_id=category.parent_id,
        depth=category.depth,
        post_count=post_count,
    )


def _same_name(a: str, b: str) -> bool:
    return a.casefold() == b.casefold()


async def lock_category_tree(session: AsyncSession) -> None:
    """Serialize tree mutations for the rest of the transaction.

    Row locks cannot stop a concurrent INSERT of a new sibling, so PostgreSQL
    mutations take one advisory lock before reading the snapshot. SQLite
    already allows a single writer.
    """
    if session.get_bind().dialect.name == "postgresql":
        await session.execute(
            text("SELECT pg_advisory_xact_lock(:key)"),
            {"key": CATEGORY_TREE_LOCK_KEY},
        )


def _is_slug_conflict(error: IntegrityError) -> bool:
    return "slug" in str(error.orig).lower()


def _find_sibling_named(
    categories: list[Category],
    name: str,
    parent_id: str | None,
    exclude_id: str | None = None,
) -> Category | None:
    for category in categories:
        if category.id == exclude_id:
            continue
        if category.parent_id == parent_id and _same_name(category.name, name):
            return category
    return None


class CategoryService:
    """Create, update, move, delete and query categories."""

    def __init__(
        self,
        session_scope: SessionScope = get_db_session,
        content_store_factory: ContentStoreFactory = SqlContentStore,
        cache: CategoryCacheInvalidator | None = None,
        activity: ActivityRecorder | None = None,
    ) -> None:
        """Initialize the service.

        Args:
            session_scope: Returns a transactional session context manager
            content_store_factory: Binds a content store to a session
            cache: Cache invalidation collaborator
            activity: Audit collaborator
        """
        self._session_scope = session_scope
        self._content_store_factory = content_store_factory
        self._cache = cache or NullCategoryCache()
        self._activity = activity or NullActivityRecorder()

    # =========================================================================
    # Plumbing
    # =========================================================================

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncGenerator[AsyncSession, None]:
        """Run one operation in its own transaction.

        Validation errors pass through (after rollback); SQLAlchemy errors
        are re-raised as CategoryStoreError.
        """
        try:
            async with self._session_scope() as session:
                yield session
        except CategoryValidationError as e:
            logger.warning(
                "Category operation rejected",
                operation=operation,
                error_code=e.code,
                **e.details,
            )
            raise
        except SQLAlchemyError as e:
            logger.error(
                "Category store failure",
                operation=operation,
                error_type=type(e).__name__,
                error=str(e),
            )
            raise CategoryStoreError(f"Category store failure during {operation}") from e

    @staticmethod
    async def _load_snapshot(session: AsyncSession, for_update: bool = False) -> list[Category]:
        """Load every category in a stable order (depth, then name).

        With `for_update` the tree lock is taken first, so the snapshot
        includes everything committed by earlier mutations.
        """
        query = select(Category).order_by(Category.depth, Category.name, Category.id)
        if for_update:
            await lock_category_tree(session)
            query = query.with_for_update()
        result = await session.execute(query)
        return list(result.scalars().all())

    async def _with_post_counts(
        self,
        session: AsyncSession,
        categories: list[Category],
    ) -> list[CategoryNode]:
        store = self._content_store_factory(session)
        counts = await store.count_content_by_categories(category.id for category in categories)
        return [to_node(category, post_count=counts[category.id]) for category in categories]

    @staticmethod
    async def _flush_checking_slug(session: AsyncSession, slug: str) -> None:
        """Flush, reporting a unique-slug violation as DuplicateSlugError."""
        try:
            await session.flush()
        except IntegrityError as e:
            if _is_slug_conflict(e):
                raise DuplicateSlugError(slug) from e
            raise

    async def _after_commit(
        self,
        action: ActivityAction,
        category_id: str,
        user_id: str | None,
        details: dict[str, Any],
    ) -> None:
        await self._cache.invalidate_categories()
        await self._activity.record(action, category_id, user_id, details)

    # =========================================================================
    # Mutations
    # =========================================================================

    async def create_category(
        self,
        name: str,
        slug: str,
        description: str | None = None,
        parent_id: str | None = None,
        *,
        user_id: str | None = None,
    ) -> CategoryNode:
        """Create a category under `parent_id` (root when None).

        Args:
            name: Display name, unique among its siblings
            slug: Globally unique slug
            description: Optional description
            parent_id: Parent category id, or None for a root
            user_id: Acting user, for the audit trail

        Returns:
            The created category with its computed depth

        Raises:
            DuplicateSlugError: Slug already taken
            CategoryNotFoundError: Parent does not exist
            DuplicateNameError: A sibling already has this name
            DepthExceededError: Parent is already at MAX_CATEGORY_DEPTH
        """
        async with self._transaction("create_category") as session:
            categories = await self._load_snapshot(session, for_update=True)
            nodes = [to_node(category) for category in categories]

            if any(category.slug == slug for category in categories):
                raise DuplicateSlugError(slug)

            if parent_id is not None and not any(c.id == parent_id for c in categories):
                raise CategoryNotFoundError(parent_id, role="parent_category")

            if _find_sibling_named(categories, name, parent_id) is not None:
                raise DuplicateNameError(name, parent_id)

            depth = calculate_depth(parent_id, nodes)
            if not validate_depth(parent_id, nodes):
                raise DepthExceededError(depth, MAX_CATEGORY_DEPTH)

            category = Category(
                name=name,
                slug=slug,
                description=description,
                parent_id=parent_id,
                depth=depth,
            )
            session.add(category)
            await self._flush_checking_slug(session, slug)
            created = to_node(category)

        logger.info(
            "Category created",
            category_id=created.id,
            slug=created.slug,
            parent_id=created.parent_id,
            depth=created.depth,
        )
        await self._after_commit(
            ActivityAction.CREATE_CATEGORY,
            created.id,
            user_id,
            {"name": name, "slug": slug},
        )
        return created

    async def update_category(
        self,
        category_id: str,
        changes: Mapping[str, Any],
        *,
        user_id: str | None = None,
    ) -> CategoryNode:
        """Edit name, slug or description. Never touches parent or depth.

        Args:
            category_id: Category to update
            changes: Subset of {"name", "slug", "description"}
            user_id: Acting user, for the audit trail

        Raises:
            CategoryNotFoundError: Category does not exist
            CategoryValidationError: Unsupported field in `changes`
            DuplicateSlugError: New slug already taken
            DuplicateNameError: New name clashes with a sibling
        """
        unsupported = set(changes) - UPDATABLE_FIELDS
        if unsupported:
            raise CategoryValidationError(
                "Only name, slug and description can be updated; use move for the parent",
                fields=sorted(unsupported),
            )

        async with self._transaction("update_category") as session:
            categories = await self._load_snapshot(session, for_update=True)
            target = next((c for c in categories if c.id == category_id), None)
            if target is None:
                raise CategoryNotFoundError(category_id)

            slug = changes.get("slug")
            if slug is not None and any(
                c.slug == slug and c.id != category_id for c in categories
            ):
                raise DuplicateSlugError(slug)

            name = changes.get("name")
            if name is not None and _find_sibling_named(
                categories, name, target.parent_id, exclude_id=category_id
            ) is not None:
                raise DuplicateNameError(name, target.parent_id)

            for key, value in changes.items():
                if key in ("name", "slug") and value is None:
                    continue
                setattr(target, key, value)

            await self._flush_checking_slug(session, target.slug)
            updated = to_node(target)

        logger.info("Category updated", category_id=category_id, fields=sorted(changes))
        await self._after_commit(
            ActivityAction.UPDATE_CATEGORY,
            category_id,
            user_id,
            {"name": updated.name, "slug": updated.slug},
        )
        return updated

    async def move_category(
        self,
        category_id: str,
        new_parent_id: str | None,
        *,
        user_id: str | None = None,
    ) -> CategoryNode:
        """Re-parent a category, shifting its whole subtree's depth.

        Descendants keep their parent links; each descendant depth shifts by
        the same delta as the moved category. Moving to the current parent
        is a no-op.

        Args:
            category_id: Category to move
            new_parent_id: New parent id, or None to make it a root
            user_id: Acting user, for the audit trail

        Returns:
            The moved category

        Raises:
            CategoryNotFoundError: Category or new parent does not exist
            CycleDetectedError: New parent is the category or one of its descendants
            DepthExceededError: Category or a descendant would exceed MAX_CATEGORY_DEPTH
            DuplicateNameError: New parent already has a child with this name
        """
        async with self._transaction("move_category") as session:
            categories = await self._load_snapshot(session, for_update=True)
            by_id = {category.id: category for category in categories}
            nodes = [to_node(category) for category in categories]

            target = by_id.get(category_id)
            if target is None:
                raise CategoryNotFoundError(category_id)

            if target.parent_id == new_parent_id:
                return to_node(target)

            if new_parent_id is not None:
                if not validate_no_cycle(category_id, new_parent_id, nodes):
                    raise CycleDetectedError(category_id, new_parent_id)
                if new_parent_id not in by_id:
                    raise CategoryNotFoundError(new_parent_id, role="parent_category")

            new_depth = calculate_depth(new_parent_id, nodes)
            if not validate_depth(new_parent_id, nodes):
                raise DepthExceededError(new_depth, MAX_CATEGORY_DEPTH, category_id)

            delta = new_depth - target.depth
            descendants = get_descendants(category_id, nodes)
            for descendant in descendants:
                if descendant.depth + delta > MAX_CATEGORY_DEPTH:
                    raise DepthExceededError(
                        descendant.depth + delta, MAX_CATEGORY_DEPTH, descendant.id
                    )

            if _find_sibling_named(
                categories, target.name, new_parent_id, exclude_id=category_id
            ) is not None:
                raise DuplicateNameError(target.name, new_parent_id)

            old_parent_id = target.parent_id
            target.parent_id = new_parent_id
            target.depth = new_depth
            if delta:
                for descendant in descendants:
                    by_id[descendant.id].depth = descendant.depth + delta

            await session.flush()
            moved = to_node(target)

        logger.info(
            "Category moved",
            category_id=category_id,
            old_parent_id=old_parent_id,
            new_parent_id=new_parent_id,
            depth=new_depth,
            descendants_shifted=len(descendants) if delta else 0,
        )
        await self._after_commit(
            ActivityAction.UPDATE_CATEGORY,
            category_id,
            user_id,
            {"action": "move", "newParentId": new_parent_id},
        )
        return moved

    async def delete_category(
        self,
        category_id: str,
        reassign_to: str | None = None,
        *,
        user_id: str | None = None,
    ) -> CategoryDeletion:
        """Delete a category, promoting its children one level.

        Direct children are re-parented to the deleted category's parent and
        take over its depth. Their own subtrees keep their parent links and
        have their depth re-derived. Posts attached to the category must be
        migrated to `reassign_to`.

        Args:
            category_id: Category to delete
            reassign_to: Category that receives the deleted category's posts
            user_id: Acting user, for the audit trail

        Raises:
            CategoryNotFoundError: Category or reassignment target does not exist
            HasAttachedContentError: Posts exist and no reassignment target given
            InvalidReassignTargetError: Reassignment target is the category itself
            DuplicateNameError: A promoted child clashes with its new siblings
        """
        async with self._transaction("delete_category") as session:
            categories = await self._load_snapshot(session, for_update=True)
            by_id = {category.id: category for category in categories}
            nodes = [to_node(category) for category in categories]

            target = by_id.get(category_id)
            if target is None:
                raise CategoryNotFoundError(category_id)

            store = self._content_store_factory(session)
            post_count = await store.count_content_by_category(category_id)

            if reassign_to is None:
                if post_count > 0:
                    raise HasAttachedContentError(category_id, post_count)
            elif reassign_to == category_id:
                raise InvalidReassignTargetError(category_id)
            elif reassign_to not in by_id:
                raise CategoryNotFoundError(reassign_to, role="reassignment_target")

            former_parent_id = target.parent_id
            former_depth = target.depth
            children = [c for c in categories if c.parent_id == category_id]

            for child in children:
                clash = _find_sibling_named(
                    categories, child.name, former_parent_id, exclude_id=category_id
                )
                if clash is not None:
                    raise DuplicateNameError(child.name, former_parent_id)

            reassigned = 0
            if reassign_to is not None and post_count > 0:
                reassigned = await store.reassign_content(category_id, reassign_to)

            for child in children:
                for descendant in get_descendants(child.id, nodes):
                    by_id[descendant.id].depth = descendant.depth - 1
                child.parent_id = former_parent_id
                child.depth = former_depth

            await session.flush()
            await session.delete(target)
            await session.flush()

        deletion = CategoryDeletion(
            category_id=category_id,
            former_parent_id=former_parent_id,
            promoted_child_ids=[child.id for child in children],
            reassigned_posts=reassigned,
        )
        logger.info(
            "Category deleted",
            category_id=category_id,
            former_parent_id=former_parent_id,
            promoted_children=len(children),
            reassigned_posts=reassigned,
        )
        await self._after_commit(
            ActivityAction.DELETE_CATEGORY,
            category_id,
            user_id,
            {"reassignTo": reassign_to},
        )
        return deletion

    # =========================================================================
    # Queries
    # =========================================================================

    async def get_all_categories(self) -> list[CategoryNode]:
        """Flat list of every category with its direct post count."""
        async with self._transaction("get_all_categories") as session:
            categories = await self._load_snapshot(session)
            return await self._with_post_counts(session, categories)

    async def get_category_by_id(self, category_id: str) -> CategoryNode:
        """Single category with its direct post count."""
        async with self._transaction("get_category_by_id") as session:
            category = await session.get(Category, category_id)
            if category is None:
                raise CategoryNotFoundError(category_id)
            return (await self._with_post_counts(session, [category]))[0]

    async def get_category_by_slug(self, slug: str) -> CategoryNode:
        """Single category (by slug) with its direct post count."""
        async with self._transaction("get_category_by_slug") as session:
            result = await session.execute(select(Category).where(Category.slug == slug))
            category = result.scalar_one_or_none()
            if category is None:
                raise CategoryNotFoundError(slug=slug)
            return (await self._with_post_counts(session, [category]))[0]

    async def get_category_tree(self) -> list[CategoryNode]:
        """Whole forest, each node annotated with its direct post count."""
        async with self._transaction("get_category_tree") as session:
            categories = await self._load_snapshot(session)
            return build_tree(await self._with_post_counts(session, categories))

    async def get_category_with_ancestors(self, category_id: str) -> list[CategoryNode]:
        """Ancestor chain ending with the category itself (root first)."""
        async with self._transaction("get_category_with_ancestors") as session:
            categories = await self._load_snapshot(session)
            nodes = await self._with_post_counts(session, categories)

        target = next((node for node in nodes if node.id == category_id), None)
        if target is None:
            raise CategoryNotFoundError(category_id)
        return [*get_ancestors(category_id, nodes), target]

    async def get_category_with_ancestors_by_slug(self, slug: str) -> list[CategoryNode]:
        """Same as get_category_with_ancestors, looked up by slug."""
        async with self._transaction("get_category_with_ancestors_by_slug") as session:
            categories = await self._load_snapshot(session)
            nodes = await self._with_post_counts(session, categories)

        target = next((node for node in nodes if node.slug == slug), None)
        if target is None:
            raise CategoryNotFoundError(slug=slug)
        return [*get_ancestors(target.id, nodes), target]

    async def get_category_with_descendants(self, category_id: str) -> CategoryNode:
        """The category as the root of its own subtree."""
        async with self._transaction("get_category_with_descendants") as session:
            categories = await self._load_snapshot(session)
            nodes = await self._with_post_counts(session, categories)

        target = next((node for node in nodes if node.id == category_id), None)
        if target is None:
            raise CategoryNotFoundError(category_id)

        subtree = build_tree([target, *get_descendants(category_id, nodes)])
        return next(node for node in subtree if node.id == category_id)

    async def get_children_with_post_counts(self, parent_id: str | None) -> list[CategoryNode]:
        """Direct children of `parent_id` (roots when None) with direct post counts.

        Counts never include descendants.
        """
        async with self._transaction("get_children_with_post_counts") as session:
            result = await session.execute(
                select(Category)
                .where(Category.parent_id.is_(None) if parent_id is None else Category.parent_id == parent_id)
                .order_by(Category.name, Category.id)
            )
            return await self._with_post_counts(session, list(result.scalars().all()))

    async def _subtree_ids(
        self,
        session: AsyncSession,
        category_id: str,
        include_descendants: bool,
    ) -> list[str]:
        categories = await self._load_snapshot(session)
        if not any(category.id == category_id for category in categories):
            raise CategoryNotFoundError(category_id)
        if not include_descendants:
            return [category_id]
        nodes = [to_node(category) for category in categories]
        return [category_id, *(node.id for node in get_descendants(category_id, nodes))]

    async def get_posts_in_category(
        self,
        category_id: str,
        include_descendants: bool = False,
    ) -> list[Post]:
        """Posts attached to the category, optionally to its whole subtree.

        Raises:
            CategoryNotFoundError: Category does not exist
        """
        async with self._transaction("get_posts_in_category") as session:
            ids = await self._subtree_ids(session, category_id, include_descendants)
            return await self._content_store_factory(session).list_content_by_categories(ids)

    async def count_posts_in_category(
        self,
        category_id: str,
        include_descendants: bool = False,
    ) -> int:
        """Number of posts directly in the category, or in its whole subtree."""
        async with self._transaction("count_posts_in_category") as session:
            ids = await self._subtree_ids(session, category_id, include_descendants)
            counts = await self._content_store_factory(session).count_content_by_categories(ids)
            return sum(counts.values())

    async def is_name_unique(self, name: str, exclude_id: str | None = None) -> bool:
        """True if no category (anywhere in the tree) has this name, ignoring case.

        Uses the same case folding as the sibling checks, not the database's
        lower(), which only folds ASCII on SQLite.
        """
        async with self._transaction("is_name_unique") as session:
            result = await session.execute(select(Category.id, Category.name))
            return not any(
                category_id != exclude_id and _same_name(existing, name)
                for category_id, existing in result.all()
            )

    @staticmethod
    def generate_slug(name: str) -> str:
        """Derive a slug from a name (see module-level generate_slug)."""
        return generate_slug(name)
