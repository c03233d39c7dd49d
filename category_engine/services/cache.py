"""Category cache invalidation.

Cached category listings and trees live in Redis under keys owned by the
presentation layer. The engine only knows the key families and drops them
after every successful mutation.
"""

from typing import Protocol

from redis.asyncio import Redis
from redis.exceptions import RedisError

from category_engine.config import settings
from category_engine.infra.logging import get_logger

logger = get_logger(__name__)

# Key families derived from category data
CATEGORY_CACHE_PATTERNS = ("categories*", "category-tree*")


class CategoryCacheInvalidator(Protocol):
    """Signals that cached category views are stale."""

    async def invalidate_categories(self) -> int: ...


class NullCategoryCache:
    """Invalidator used when no cache is configured."""

    async def invalidate_categories(self) -> int:
        return 0


class RedisCategoryCache:
    """Drops category listing and tree keys from Redis."""

    def __init__(self, client: Redis, prefix: str = "") -> None:
        """Initialize the invalidator.

        Args:
            client: Async Redis client
            prefix: Prefix shared by all cache keys
        """
        self._client = client
        self._prefix = prefix

    @classmethod
    def from_url(cls, url: str, prefix: str = "") -> "RedisCategoryCache":
        """Create an invalidator with its own connection pool."""
        client = Redis.from_url(
            url,
            socket_connect_timeout=5,
            socket_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        return cls(client, prefix=prefix)

    @property
    def patterns(self) -> list[str]:
        """Fully prefixed key patterns this invalidator deletes."""
        return [f"{self._prefix}{pattern}" for pattern in CATEGORY_CACHE_PATTERNS]

    async def invalidate_categories(self) -> int:
        """Delete every cached category view.

        Uses SCAN rather than KEYS so large keyspaces are not blocked.
        Redis failures are logged and reported as zero deletions; the
        mutation that triggered the invalidation has already committed.

        Returns:
            Number of keys deleted
        """
        deleted = 0
        try:
            for pattern in self.patterns:
                keys = [key async for key in self._client.scan_iter(match=pattern)]
                if keys:
                    deleted += await self._client.delete(*keys)
        except RedisError as e:
            logger.error("Category cache invalidation failed", error=str(e))
            return deleted

        logger.debug("Category cache invalidated", keys_deleted=deleted)
        return deleted

    async def is_available(self) -> bool:
        """Check whether Redis answers a ping."""
        try:
            return bool(await self._client.ping())
        except RedisError:
            return False

    async def close(self) -> None:
        """Close the Redis connection pool."""
        await self._client.aclose()


_cache: RedisCategoryCache | NullCategoryCache | None = None


def get_category_cache() -> RedisCategoryCache | NullCategoryCache:
    """Get the process-wide invalidator (Redis when `redis_url` is set)."""
    global _cache

    if _cache is None:
        if settings.redis_url:
            _cache = RedisCategoryCache.from_url(settings.redis_url, prefix=settings.cache_key_prefix)
            logger.info("Redis category cache configured", prefix=settings.cache_key_prefix)
        else:
            _cache = NullCategoryCache()
            logger.info("Category cache disabled (no redis_url)")

    return _cache


async def close_category_cache() -> None:
    """Close the process-wide invalidator, if it holds a connection."""
    global _cache

    if isinstance(_cache, RedisCategoryCache):
        await _cache.close()
    _cache = None
