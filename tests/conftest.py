"""Shared fixtures: in-memory SQLite store, wired service, HTTP client."""

from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta, timezone
from functools import partial
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from category_engine.api.deps import get_category_service
from category_engine.core.tree_ops import CategoryNode
from category_engine.infra.database import (
    create_session_factory,
    create_tables,
    transactional_session,
)
from category_engine.main import app
from category_engine.models.post import Post
from category_engine.services.activity import SqlActivityRecorder
from category_engine.services.category_service import CategoryService


@pytest_asyncio.fixture
async def engine() -> AsyncEngine:
    """Fresh in-memory database per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine):
    return create_session_factory(engine)


@pytest.fixture
def session_scope(session_factory):
    """Transactional session scope bound to the test database."""
    return partial(transactional_session, session_factory)


@pytest.fixture
def mock_cache() -> MagicMock:
    """Cache invalidator that records calls."""
    cache = MagicMock()
    cache.invalidate_categories = AsyncMock(return_value=0)
    return cache


@pytest.fixture
def service(session_scope, mock_cache) -> CategoryService:
    """CategoryService writing to the test database and activity table."""
    return CategoryService(
        session_scope=session_scope,
        cache=mock_cache,
        activity=SqlActivityRecorder(session_scope),
    )


@pytest.fixture
def add_posts(session_scope) -> Callable[[str | None, int], Awaitable[list[str]]]:
    """Insert `count` posts into a category and return their ids."""
    counter = {"n": 0}

    async def _add(category_id: str | None, count: int = 1) -> list[str]:
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        posts = []
        for _ in range(count):
            counter["n"] += 1
            n = counter["n"]
            posts.append(
                Post(
                    title=f"Post {n}",
                    slug=f"post-{n}",
                    status="PUBLISHED",
                    category_id=category_id,
                    published_at=base + timedelta(days=n),
                )
            )
        async with session_scope() as session:
            session.add_all(posts)
            await session.flush()
            return [post.id for post in posts]

    return _add


@pytest_asyncio.fixture
async def tech_tree(service: CategoryService) -> dict[str, CategoryNode]:
    """Tech > Web > React, plus a separate root Life."""
    tech = await service.create_category("Tech", "tech")
    web = await service.create_category("Web", "web", parent_id=tech.id)
    react = await service.create_category("React", "react", parent_id=web.id)
    life = await service.create_category("Life", "life")
    return {"tech": tech, "web": web, "react": react, "life": life}


@pytest_asyncio.fixture
async def client(service: CategoryService) -> AsyncClient:
    """HTTP client against the app, with the service bound to the test database."""
    app.dependency_overrides[get_category_service] = lambda: service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
