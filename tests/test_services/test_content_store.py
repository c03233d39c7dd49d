"""Tests for the SQL-backed content store."""

import pytest

from category_engine.services.content_store import SqlContentStore


class TestSqlContentStore:
    """Tests for SqlContentStore."""

    @pytest.mark.asyncio
    async def test_count_is_direct_only(self, session_scope, tech_tree, add_posts):
        await add_posts(tech_tree["web"].id, 2)
        await add_posts(tech_tree["react"].id, 1)

        async with session_scope() as session:
            store = SqlContentStore(session)
            assert await store.count_content_by_category(tech_tree["web"].id) == 2
            assert await store.count_content_by_category(tech_tree["tech"].id) == 0

    @pytest.mark.asyncio
    async def test_grouped_counts_include_empty_categories(self, session_scope, tech_tree, add_posts):
        await add_posts(tech_tree["web"].id, 2)
        await add_posts(tech_tree["react"].id, 1)
        ids = [tech_tree[key].id for key in ("tech", "web", "react", "life")]

        async with session_scope() as session:
            counts = await SqlContentStore(session).count_content_by_categories(ids)

        assert counts == {
            tech_tree["tech"].id: 0,
            tech_tree["web"].id: 2,
            tech_tree["react"].id: 1,
            tech_tree["life"].id: 0,
        }

    @pytest.mark.asyncio
    async def test_grouped_counts_with_no_categories(self, session_scope):
        async with session_scope() as session:
            assert await SqlContentStore(session).count_content_by_categories([]) == {}

    @pytest.mark.asyncio
    async def test_reassign_returns_moved_count(self, session_scope, tech_tree, add_posts):
        await add_posts(tech_tree["web"].id, 3)

        async with session_scope() as session:
            store = SqlContentStore(session)
            moved = await store.reassign_content(tech_tree["web"].id, tech_tree["life"].id)
            assert moved == 3

        async with session_scope() as session:
            store = SqlContentStore(session)
            assert await store.count_content_by_category(tech_tree["web"].id) == 0
            assert await store.count_content_by_category(tech_tree["life"].id) == 3

    @pytest.mark.asyncio
    async def test_reassign_nothing(self, session_scope, tech_tree):
        async with session_scope() as session:
            moved = await SqlContentStore(session).reassign_content(
                tech_tree["web"].id, tech_tree["life"].id
            )
        assert moved == 0

    @pytest.mark.asyncio
    async def test_list_by_categories_newest_first(self, session_scope, tech_tree, add_posts):
        web_posts = await add_posts(tech_tree["web"].id, 2)
        react_posts = await add_posts(tech_tree["react"].id, 1)
        await add_posts(tech_tree["life"].id, 1)

        async with session_scope() as session:
            posts = await SqlContentStore(session).list_content_by_categories(
                {tech_tree["web"].id, tech_tree["react"].id}
            )

        assert [p.id for p in posts] == [react_posts[0], web_posts[1], web_posts[0]]

    @pytest.mark.asyncio
    async def test_list_with_no_categories(self, session_scope):
        async with session_scope() as session:
            assert await SqlContentStore(session).list_content_by_categories([]) == []
