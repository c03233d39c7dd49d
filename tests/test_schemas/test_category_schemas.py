"""Tests for category schemas."""

import pytest
from pydantic import ValidationError

from category_engine.core.tree_ops import CategoryNode, build_tree
from category_engine.schemas.category import (
    CategoryBreadcrumb,
    CategoryCreate,
    CategoryMove,
    CategoryResponse,
    CategoryUpdate,
)


class TestCategoryCreate:
    """Tests for CategoryCreate."""

    def test_accepts_camel_case(self):
        payload = CategoryCreate.model_validate({"name": "Web", "parentId": "p1"})
        assert payload.parent_id == "p1"
        assert payload.slug is None

    def test_rejects_empty_name(self):
        with pytest.raises(ValidationError):
            CategoryCreate(name="")

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            CategoryCreate.model_validate({"name": "Web", "depth": 5})


class TestCategoryUpdate:
    """Tests for CategoryUpdate."""

    def test_only_sent_fields_are_set(self):
        payload = CategoryUpdate.model_validate({"description": None})
        assert payload.model_dump(exclude_unset=True) == {"description": None}

    def test_parent_not_updatable(self):
        with pytest.raises(ValidationError):
            CategoryUpdate.model_validate({"parentId": "p1"})


def test_move_requires_new_parent_key():
    with pytest.raises(ValidationError):
        CategoryMove.model_validate({})
    assert CategoryMove.model_validate({"newParentId": None}).new_parent_id is None


class TestCategoryResponse:
    """Tests for the query-facing output shape."""

    def test_flat_node_omits_optional_views(self):
        node = CategoryNode(id="1", name="Tech", slug="tech")
        data = CategoryResponse.from_node(node).model_dump(by_alias=True)

        assert data == {
            "id": "1",
            "name": "Tech",
            "slug": "tech",
            "description": None,
            "parentId": None,
            "depth": 0,
        }

    def test_counted_node_has_post_count(self):
        node = CategoryNode(id="1", name="Tech", slug="tech", post_count=0)
        data = CategoryResponse.from_node(node).model_dump(by_alias=True)
        assert data["postCount"] == 0
        assert "children" not in data

    def test_tree_node_has_nested_children(self):
        roots = build_tree(
            [
                CategoryNode(id="1", name="Tech", slug="tech"),
                CategoryNode(id="2", name="Web", slug="web", parent_id="1", depth=1),
            ]
        )
        data = CategoryResponse.from_node(roots[0]).model_dump(by_alias=True)

        assert data["children"][0]["parentId"] == "1"
        assert data["children"][0]["children"] == []


def test_breadcrumb_paths():
    chain = [
        CategoryNode(id="1", name="Tech", slug="tech"),
        CategoryNode(id="2", name="Web", slug="web", parent_id="1", depth=1),
    ]
    crumb = CategoryBreadcrumb.from_chain(chain)

    assert crumb.path == "Tech/Web"
    assert crumb.display_path == "Tech > Web"
    assert crumb.model_dump(by_alias=True)["displayPath"] == "Tech > Web"
