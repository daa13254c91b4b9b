import json
import logging

import redis.asyncio as redis

from actunews.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    Cache-aside store for post listings and post detail pages.

    Redis being down is not an error: reads miss, writes are skipped and
    the services fall through to the database.
    """

    def __init__(self) -> None:
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    async def connect(self) -> None:
        self._redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", settings.REDIS_URL)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis unreachable, caching disabled: %s", exc)
            await self._redis.aclose()
            self._redis = None

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    @property
    def enabled(self) -> bool:
        return self._redis is not None

    # ------------------------------------------------------------------
    # Reads / writes
    # ------------------------------------------------------------------

    async def get(self, key: str) -> dict | list | None:
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(key)
        except Exception as exc:
            logger.debug("Cache GET %r failed: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        self._hits += 1
        return json.loads(data)

    async def set(self, key: str, value: dict | list, ttl: int | None = None) -> None:
        if not self._redis:
            return
        try:
            await self._redis.set(key, json.dumps(value, default=str), ex=ttl)
        except Exception as exc:
            logger.debug("Cache SET %r failed: %s", key, exc)

    async def delete_pattern(self, pattern: str) -> None:
        """Delete every key matching *pattern* (SCAN, not KEYS)."""
        if not self._redis:
            return
        try:
            keys = [key async for key in self._redis.scan_iter(match=pattern)]
            if keys:
                await self._redis.delete(*keys)
                logger.debug("Invalidated %d key(s) matching %r", len(keys), pattern)
        except Exception as exc:
            logger.debug("Cache DELETE %r failed: %s", pattern, exc)

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------

    async def invalidate_posts(self, post_id: int | None = None) -> None:
        """Drop every cached listing, plus the detail entry for *post_id* if given."""
        await self.delete_pattern("posts:list:*")
        if post_id is not None:
            await self.delete_pattern(f"posts:detail:{post_id}")

    async def invalidate_category(self) -> None:
        # Listings embed category names and are filterable by alias.
        await self.delete_pattern("posts:*")

    @property
    def stats(self) -> dict:
        total = self._hits + self._misses
        return {
            "enabled": self.enabled,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }


cache = CacheManager()
