"""
Async Redis client management.

A single ``redis.asyncio`` client with its own connection pool is shared by
the process. Responses are decoded to ``str``.
"""

from typing import Optional

import redis.asyncio as redis
from redis.asyncio import Redis

from projectbrain.core.logging_config import get_logger
from projectbrain.server.core.config import settings

logger = get_logger(__name__)

_client: Optional[Redis] = None


def get_redis() -> Redis:
    """Return the shared Redis client, creating it on first use."""
    global _client
    if _client is None:
        _client = redis.from_url(
            settings.redis.url,
            encoding="utf-8",
            decode_responses=True,
            socket_timeout=5.0,
            socket_connect_timeout=5.0,
        )
    return _client


async def ping_redis() -> bool:
    """Check connectivity, logging instead of raising."""
    try:
        await get_redis().ping()
        logger.info(f"Redis connected at {settings.redis.url}")
        return True
    except redis.RedisError as e:
        logger.warning(f"Redis is not reachable, activity cache will fall back to the database: {e}")
        return False


async def close_redis() -> None:
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
        logger.info("Redis connection closed")
