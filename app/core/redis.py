"""
Redis configuration and connection management
"""

import redis.asyncio as redis
from typing import Optional, Tuple
import logging
import time

from app.config import settings

logger = logging.getLogger(__name__)

# Global Redis client
redis_client: Optional[redis.Redis] = None


async def init_redis():
    """
    Initialize Redis connection
    """
    global redis_client
    try:
        redis_client = redis.from_url(
            settings.REDIS_URL,
            max_connections=settings.REDIS_MAX_CONNECTIONS,
            decode_responses=True
        )
        await redis_client.ping()
        logger.info("Redis connection established")
    except Exception as e:
        logger.error(f"Failed to connect to Redis: {e}")
        raise


async def close_redis():
    """
    Close Redis connection
    """
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis connection closed")


def set_redis(client: Optional[redis.Redis]):
    """
    Replace the global client (used by tests to inject fakeredis)
    """
    global redis_client
    redis_client = client


async def get_redis() -> redis.Redis:
    """
    Get Redis client
    """
    if not redis_client:
        await init_redis()
    return redis_client


async def is_rate_limited(key: str, limit: int, window: int) -> Tuple[bool, int]:
    """
    Fixed-window counter. Returns (limited, current_count).

    Fails open: when Redis is unreachable the request is allowed.
    """
    try:
        client = await get_redis()
        bucket = f"ratelimit:{key}:{int(time.time()) // window}"
        count = await client.incr(bucket)
        if count == 1:
            await client.expire(bucket, window)
        return count > limit, count
    except Exception as e:
        logger.warning(f"Rate limit check failed for {key}: {e}")
        return False, 0
