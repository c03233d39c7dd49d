"""Tests for category cache invalidation."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from category_engine.services import cache as cache_module
from category_engine.services.cache import (
    NullCategoryCache,
    RedisCategoryCache,
    close_category_cache,
    get_category_cache,
)


def scan_results(keys_by_pattern: dict[str, list[str]]):
    """Build a scan_iter replacement yielding the keys for each pattern."""

    def scan_iter(match: str):
        async def gen():
            for key in keys_by_pattern.get(match, []):
                yield key

        return gen()

    return scan_iter


@pytest.fixture
def mock_redis() -> MagicMock:
    client = MagicMock()
    client.delete = AsyncMock(side_effect=lambda *keys: len(keys))
    client.ping = AsyncMock(return_value=True)
    client.aclose = AsyncMock()
    return client


class TestRedisCategoryCache:
    """Tests for RedisCategoryCache."""

    def test_patterns_use_prefix(self, mock_redis):
        cache = RedisCategoryCache(mock_redis, prefix="blog:")
        assert cache.patterns == ["blog:categories*", "blog:category-tree*"]

    @pytest.mark.asyncio
    async def test_deletes_matching_keys(self, mock_redis):
        mock_redis.scan_iter = MagicMock(
            side_effect=scan_results(
                {
                    "blog:categories*": ["blog:categories:all", "blog:categories:roots"],
                    "blog:category-tree*": ["blog:category-tree"],
                }
            )
        )
        cache = RedisCategoryCache(mock_redis, prefix="blog:")

        deleted = await cache.invalidate_categories()

        assert deleted == 3
        assert mock_redis.delete.await_count == 2

    @pytest.mark.asyncio
    async def test_no_keys_no_delete(self, mock_redis):
        mock_redis.scan_iter = MagicMock(side_effect=scan_results({}))
        cache = RedisCategoryCache(mock_redis)

        assert await cache.invalidate_categories() == 0
        mock_redis.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_redis_failure_is_logged_not_raised(self, mock_redis):
        mock_redis.scan_iter = MagicMock(side_effect=RedisConnectionError("down"))
        cache = RedisCategoryCache(mock_redis)

        assert await cache.invalidate_categories() == 0

    @pytest.mark.asyncio
    async def test_is_available(self, mock_redis):
        cache = RedisCategoryCache(mock_redis)
        assert await cache.is_available() is True

        mock_redis.ping.side_effect = RedisConnectionError("down")
        assert await cache.is_available() is False

    @pytest.mark.asyncio
    async def test_close(self, mock_redis):
        await RedisCategoryCache(mock_redis).close()
        mock_redis.aclose.assert_awaited_once()


class TestNullCategoryCache:
    """Tests for NullCategoryCache."""

    @pytest.mark.asyncio
    async def test_invalidate_is_noop(self):
        assert await NullCategoryCache().invalidate_categories() == 0


class TestGetCategoryCache:
    """Tests for the process-wide invalidator."""

    @pytest.fixture(autouse=True)
    def reset_singleton(self):
        cache_module._cache = None
        yield
        cache_module._cache = None

    def test_null_cache_without_redis_url(self):
        with patch.object(cache_module.settings, "redis_url", ""):
            assert isinstance(get_category_cache(), NullCategoryCache)

    def test_redis_cache_with_url(self):
        with patch.object(cache_module.settings, "redis_url", "redis://localhost:6379/0"):
            cache = get_category_cache()

        assert isinstance(cache, RedisCategoryCache)
        assert get_category_cache() is cache

    @pytest.mark.asyncio
    async def test_close_resets_singleton(self, mock_redis):
        cache_module._cache = RedisCategoryCache(mock_redis)

        await close_category_cache()

        mock_redis.aclose.assert_awaited_once()
        assert cache_module._cache is None
