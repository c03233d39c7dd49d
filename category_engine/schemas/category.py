"""Category request/response schemas.

Responses use camelCase keys. `children` only appears on tree-shaped
responses and `postCount` only on count-annotated ones.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_serializer
from pydantic.alias_generators import to_camel

from category_engine.core.path_codec import (
    format_path_for_display,
    path_from_nodes,
    serialize_path,
)
from category_engine.core.tree_ops import CategoryNode

_OPTIONAL_VIEW_KEYS = ("children", "post_count", "postCount")


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases, accepting either form."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CategoryCreate(CamelModel):
    """Payload for creating a category."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str = Field(min_length=1, max_length=100)
    slug: str | None = Field(
        default=None,
        min_length=1,
        max_length=120,
        description="Generated from the name when omitted",
    )
    description: str | None = Field(default=None, max_length=500)
    parent_id: str | None = Field(default=None, description="Parent id, null for a root")


class CategoryUpdate(CamelModel):
    """Field-only edit; the parent is changed through the move endpoint."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=100)
    slug: str | None = Field(default=None, min_length=1, max_length=120)
    description: str | None = Field(default=None, max_length=500)


class CategoryMove(CamelModel):
    """Payload for moving a category."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    new_parent_id: str | None = Field(description="New parent id, null to make it a root")


class CategoryResponse(CamelModel):
    """Category as exposed to callers."""

    id: str
    name: str
    slug: str
    description: str | None = None
    parent_id: str | None = None
    depth: int
    children: list[CategoryResponse] | None = None
    post_count: int | None = None

    @model_serializer(mode="wrap")
    def _omit_absent_views(self, handler: Any) -> dict[str, Any]:
        data = handler(self)
        for key in _OPTIONAL_VIEW_KEYS:
            if key in data and data[key] is None:
                del data[key]
        return data

    @classmethod
    def from_node(cls, node: CategoryNode) -> CategoryResponse:
        """Convert a (possibly nested) CategoryNode."""
        return cls(
            id=node.id,
            name=node.name,
            slug=node.slug,
            description=node.description,
            parent_id=node.parent_id,
            depth=node.depth,
            children=[cls.from_node(child) for child in node.children]
            if node.children is not None
            else None,
            post_count=node.post_count,
        )


class CategoryBreadcrumb(CamelModel):
    """Root-to-category chain plus its serialized and display paths."""

    categories: list[CategoryResponse]
    path: str = Field(description="Names joined with '/'")
    display_path: str = Field(description="Names joined with ' > '")

    @classmethod
    def from_chain(cls, chain: list[CategoryNode]) -> CategoryBreadcrumb:
        category_path = path_from_nodes(chain)
        return cls(
            categories=[CategoryResponse.from_node(node) for node in chain],
            path=serialize_path(category_path),
            display_path=format_path_for_display(category_path),
        )


class PostSummary(CamelModel):
    """Post as listed under a category."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    title: str
    slug: str
    status: str
    category_id: str | None = None
    published_at: datetime | None = None


class CategoryPostsResponse(CamelModel):
    """Posts of a category, optionally including its subtree."""

    category_id: str
    include_descendants: bool
    total: int
    posts: list[PostSummary]


class CategoryDeleteResponse(CamelModel):
    """Outcome of a category delete."""

    category_id: str
    former_parent_id: str | None = None
    promoted_child_ids: list[str] = Field(default_factory=list)
    reassigned_posts: int = 0
