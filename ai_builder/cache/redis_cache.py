"""Redis cache for document store lookups."""

import json
import logging
from typing import Any, Optional

import redis.asyncio as redis

from ..core.config import settings


logger = logging.getLogger(__name__)


class Cache:
    """Async Redis cache client.

    Disabled when no URL is configured or the server is unreachable; every
    operation then degrades to a miss.
    """

    def __init__(self, url: Optional[str] = None, default_ttl: int = 60):
        self.url = url
        self.default_ttl = default_ttl
        self.redis: Optional[Any] = None
        self.enabled = bool(url)

    async def connect(self):
        if not self.enabled:
            logger.info("Redis caching disabled (REDIS_URL not set)")
            return

        try:
            self.redis = redis.from_url(self.url, decode_responses=True, encoding="utf-8")
            await self.redis.ping()
            logger.info(f"Connected to Redis at {self.url}")
        except Exception as e:
            logger.warning(f"Failed to connect to Redis: {e}. Caching disabled.")
            self.redis = None
            self.enabled = False

    async def disconnect(self):
        if self.redis:
            await self.redis.aclose()
            self.redis = None
            logger.info("Disconnected from Redis")

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/caching disabled
        """
        if not self.enabled or not self.redis:
            return None

        try:
            value = await self.redis.get(key)
            if value:
                return json.loads(value)
            return None
        except Exception as e:
            logger.error(f"Cache get error for key {key}: {e}")
            return None

    async def set(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """
        Set value in cache.

        Args:
            key: Cache key
            value: Value to cache (must be JSON serializable)
            ttl: Time to live in seconds, defaults to the cache's TTL
        """
        if not self.enabled or not self.redis:
            return False

        try:
            await self.redis.set(key, json.dumps(value), ex=ttl or self.default_ttl)
            return True
        except Exception as e:
            logger.error(f"Cache set error for key {key}: {e}")
            return False

    async def delete(self, key: str) -> bool:
        if not self.enabled or not self.redis:
            return False

        try:
            await self.redis.delete(key)
            return True
        except Exception as e:
            logger.error(f"Cache delete error for key {key}: {e}")
            return False


cache = Cache(settings.REDIS_URL, default_ttl=settings.CACHE_TTL_SECONDS)


def cache_key_prompts(contract_type: str) -> str:
    return f"prompts:{contract_type}"
