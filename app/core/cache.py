"""
Redis backed response cache with TTL and prefix invalidation
"""

import json
import logging
import hashlib
from typing import Any, Optional, Dict
from datetime import datetime, timezone

from app.core.redis import get_redis
from app.config import settings

logger = logging.getLogger(__name__)


class CacheManager:
    """
    JSON cache in Redis. Every failure degrades to a cache miss.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        # Cache version for invalidation coordination
        self.cache_version = "v1"

    @property
    def enabled(self) -> bool:
        return settings.CACHE_ENABLED

    def generate_cache_key(self, prefix: str, params: Optional[Dict[str, Any]] = None) -> str:
        """
        Generate consistent cache key with version and parameter hash
        """
        param_str = json.dumps(params or {}, sort_keys=True, default=str)
        param_hash = hashlib.md5(param_str.encode()).hexdigest()[:8]
        return f"{self.cache_version}:{prefix}:{param_hash}"

    async def get(self, cache_key: str) -> Optional[Any]:
        """
        Return the cached payload or None on miss / corruption / error
        """
        if not self.enabled:
            return None
        try:
            redis_client = await get_redis()
            cached_entry = await redis_client.get(cache_key)

            if not cached_entry:
                return None

            try:
                cache_entry = json.loads(cached_entry)
            except json.JSONDecodeError:
                await redis_client.delete(cache_key)
                return None

            if not isinstance(cache_entry, dict) or "data" not in cache_entry:
                await redis_client.delete(cache_key)
                return None

            if cache_entry.get("version") != self.cache_version:
                self.logger.info(f"Cache version mismatch for key {cache_key}, invalidating")
                await redis_client.delete(cache_key)
                return None

            return cache_entry["data"]

        except Exception as e:
            self.logger.error(f"Error retrieving cache for key {cache_key}: {e}")
            return None

    async def set(self, cache_key: str, data: Any, ttl: int = 300) -> bool:
        """
        Store JSON-serializable data with TTL and metadata
        """
        if not self.enabled:
            return False
        try:
            redis_client = await get_redis()
            cache_entry = {
                "data": data,
                "cached_at": datetime.now(timezone.utc).isoformat(),
                "version": self.cache_version,
                "ttl": ttl
            }
            await redis_client.setex(
                cache_key,
                ttl,
                json.dumps(cache_entry, default=str)
            )
            self.logger.debug(f"Cache set for key {cache_key} with TTL {ttl}")
            return True

        except Exception as e:
            self.logger.error(f"Error setting cache for key {cache_key}: {e}")
            return False

    async def invalidate_pattern(self, pattern: str) -> int:
        """
        Invalidate all cache keys matching pattern
        Returns number of keys deleted
        """
        if not self.enabled:
            return 0
        try:
            redis_client = await get_redis()
            keys = [key async for key in redis_client.scan_iter(match=pattern)]

            if keys:
                deleted_count = await redis_client.delete(*keys)
                self.logger.info(f"Invalidated {deleted_count} cache keys matching pattern: {pattern}")
                return deleted_count

            return 0

        except Exception as e:
            self.logger.error(f"Error invalidating cache pattern {pattern}: {e}")
            return 0

    async def invalidate_events_cache(self) -> int:
        return await self.invalidate_pattern(f"{self.cache_version}:events*")

    async def invalidate_history_cache(self) -> int:
        return await self.invalidate_pattern(f"{self.cache_version}:history*")


# Global cache manager instance
cache_manager = CacheManager()
