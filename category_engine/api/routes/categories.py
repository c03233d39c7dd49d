"""Category endpoints.

Thin adapters over CategoryService: validation errors raised by the service
are turned into structured error responses by the handler in main.py.
"""

from fastapi import APIRouter, Query, status

from category_engine.api.deps import ActingUser, Categories
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

router = APIRouter()


@router.get("", response_model=list[CategoryResponse])
async def list_categories(service: Categories) -> list[CategoryResponse]:
    """Flat list of every category with its direct post count."""
    nodes = await service.get_all_categories()
    return [CategoryResponse.from_node(node) for node in nodes]


@router.get("/tree", response_model=list[CategoryResponse])
async def category_tree(service: Categories) -> list[CategoryResponse]:
    """Whole category forest with nested children."""
    roots = await service.get_category_tree()
    return [CategoryResponse.from_node(node) for node in roots]


@router.get("/children", response_model=list[CategoryResponse])
async def category_children(
    service: Categories,
    parent_id: str | None = Query(default=None, description="Parent id, omitted for roots"),
) -> list[CategoryResponse]:
    """Direct children of a category (or the roots) with direct post counts."""
    nodes = await service.get_children_with_post_counts(parent_id)
    return [CategoryResponse.from_node(node) for node in nodes]


@router.get("/slug/{slug}/breadcrumb", response_model=CategoryBreadcrumb)
async def category_breadcrumb(slug: str, service: Categories) -> CategoryBreadcrumb:
    """Root-to-category chain for breadcrumb navigation."""
    chain = await service.get_category_with_ancestors_by_slug(slug)
    return CategoryBreadcrumb.from_chain(chain)


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: str, service: Categories) -> CategoryResponse:
    """Single category with its direct post count."""
    return CategoryResponse.from_node(await service.get_category_by_id(category_id))


@router.get("/{category_id}/subtree", response_model=CategoryResponse)
async def category_subtree(category_id: str, service: Categories) -> CategoryResponse:
    """Category with all of its descendants nested under it."""
    return CategoryResponse.from_node(await service.get_category_with_descendants(category_id))


@router.get("/{category_id}/posts", response_model=CategoryPostsResponse)
async def category_posts(
    category_id: str,
    service: Categories,
    include_descendants: bool = Query(default=False),
) -> CategoryPostsResponse:
    """Posts of a category, optionally including every descendant category."""
    posts = await service.get_posts_in_category(category_id, include_descendants)
    return CategoryPostsResponse(
        category_id=category_id,
        include_descendants=include_descendants,
        total=len(posts),
        posts=[PostSummary.model_validate(post) for post in posts],
    )


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(
    payload: CategoryCreate,
    service: Categories,
    user_id: ActingUser,
) -> CategoryResponse:
    """Create a category; the slug is derived from the name when omitted."""
    slug = payload.slug or service.generate_slug(payload.name)
    node = await service.create_category(
        name=payload.name,
        slug=slug,
        description=payload.description,
        parent_id=payload.parent_id,
        user_id=user_id,
    )
    return CategoryResponse.from_node(node)


@router.patch("/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    service: Categories,
    user_id: ActingUser,
) -> CategoryResponse:
    """Update name, slug or description (only the fields sent)."""
    changes = payload.model_dump(exclude_unset=True)
    node = await service.update_category(category_id, changes, user_id=user_id)
    return CategoryResponse.from_node(node)


@router.post("/{category_id}/move", response_model=CategoryResponse)
async def move_category(
    category_id: str,
    payload: CategoryMove,
    service: Categories,
    user_id: ActingUser,
) -> CategoryResponse:
    """Move a category (and its subtree) under a new parent."""
    node = await service.move_category(category_id, payload.new_parent_id, user_id=user_id)
    return CategoryResponse.from_node(node)


@router.delete("/{category_id}", response_model=CategoryDeleteResponse)
async def delete_category(
    category_id: str,
    service: Categories,
    user_id: ActingUser,
    reassign_to: str | None = Query(default=None, description="Category receiving the posts"),
) -> CategoryDeleteResponse:
    """Delete a category, promoting its children and migrating its posts."""
    deletion = await service.delete_category(category_id, reassign_to, user_id=user_id)
    return CategoryDeleteResponse(
        category_id=deletion.category_id,
        former_parent_id=deletion.former_parent_id,
        promoted_child_ids=deletion.promoted_child_ids,
        reassigned_posts=deletion.reassigned_posts,
    )
