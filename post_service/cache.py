"""
Redis cache for feed pages
"""
import redis.asyncio as redis
from typing import Optional
import logging
import json

from .config import settings
from .domain.models import FeedQuery, FeedResult, Post

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager for feed pages

    Page keys embed a generation number; bumping the generation invalidates
    every cached page at once.
    """

    def __init__(self):
        self.client: Optional[redis.Redis] = None

    async def connect(self):
        """Connect to Redis"""
        if not settings.REDIS_ENABLED:
            logger.warning("Redis is disabled")
            return

        try:
            self.client = await redis.from_url(
                f"redis://{settings.REDIS_HOST}:{settings.REDIS_PORT}/{settings.REDIS_DB}",
                password=settings.REDIS_PASSWORD if settings.REDIS_PASSWORD else None,
                encoding="utf-8",
                decode_responses=True,
            )
            await self.client.ping()
            logger.info("Redis cache connected successfully")
        except Exception as e:
            logger.error(f"Failed to connect to Redis: {e}")
            self.client = None

    async def disconnect(self):
        """Disconnect from Redis"""
        if self.client:
            await self.client.close()
            logger.info("Redis cache disconnected")

    def _generation_key(self) -> str:
        return "feed:generation"

    def _page_key(self, generation: str, query: FeedQuery) -> str:
        return f"feed:{generation}:{query.cache_key()}"

    async def _generation(self) -> str:
        return await self.client.get(self._generation_key()) or "0"

    async def get_feed_page(self, query: FeedQuery) -> Optional[FeedResult]:
        """Get a cached feed page"""
        if not self.client:
            return None

        try:
            key = self._page_key(await self._generation(), query)
            data = await self.client.get(key)
        except Exception as e:
            logger.error(f"Failed to get feed page from cache: {e}")
            return None

        if not data:
            return None

        payload = json.loads(data)
        return FeedResult(
            items=[Post.from_dict(item) for item in payload["items"]],
            next_cursor=payload["next_cursor"],
        )

    async def set_feed_page(
        self,
        query: FeedQuery,
        result: FeedResult,
        ttl: int = None
    ) -> bool:
        """Cache a feed page"""
        if not self.client:
            return False

        payload = {
            "items": [post.to_dict() for post in result.items],
            "next_cursor": result.next_cursor,
        }
        try:
            key = self._page_key(await self._generation(), query)
            await self.client.set(
                key,
                json.dumps(payload),
                ex=ttl or settings.FEED_CACHE_TTL
            )
            return True
        except Exception as e:
            logger.error(f"Failed to cache feed page: {e}")
            return False

    async def invalidate_feeds(self) -> bool:
        """Drop every cached feed page"""
        if not self.client:
            return False

        try:
            await self.client.incr(self._generation_key())
            return True
        except Exception as e:
            logger.error(f"Failed to invalidate feed cache: {e}")
            return False


# Global cache instance
cache = RedisCache()


async def get_cache() -> RedisCache:
    """Dependency for getting cache instance"""
    return cache
