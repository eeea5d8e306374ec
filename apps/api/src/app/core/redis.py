"""
Redis Client

Shared async Redis connection. Used by the rate limiter that protects
the company one-time credential endpoints.
"""

import logging

from redis.asyncio import Redis, from_url

from app.core.config import settings

logger = logging.getLogger(__name__)

redis_client: Redis | None = None


async def init_redis() -> Redis:
    """Open the shared connection and ping it. Call on startup."""
    global redis_client
    redis_client = from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await redis_client.ping()
    logger.info("Redis connection established")
    return redis_client


async def get_redis() -> Redis | None:
    """Return the shared client, or None when Redis was never initialized."""
    return redis_client


async def close_redis() -> None:
    """Close the shared connection."""
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
