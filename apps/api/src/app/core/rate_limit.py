"""
Rate Limiting Module

Sliding-window rate limiting backed by the shared Redis client, with an
in-memory fallback when Redis is unavailable.

SECURITY: the company one-time credential is a short numeric code, so
every endpoint that accepts one is limited per client address and
contact email to stop brute-force guessing.
"""

import logging
import time

from fastapi import HTTPException, Request, status
from redis.asyncio import Redis

from app.core.redis import get_redis

logger = logging.getLogger(__name__)

# Fallback storage: {key: [timestamp, ...]}
_memory_store: dict[str, list[float]] = {}

# 10 credential attempts per 5 minutes
CREDENTIAL_ATTEMPT_LIMIT = (10, 300)


class RateLimitExceeded(HTTPException):
    """Raised when a caller exceeds its request budget."""

    def __init__(self, limit: int, window_seconds: int):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail={
                "error": "RATE_LIMIT_EXCEEDED",
                "message": (
                    f"Rate limit exceeded. Maximum {limit} requests per {window_seconds} seconds."
                ),
                "retry_after_seconds": window_seconds,
            },
            headers={"Retry-After": str(window_seconds)},
        )


async def _check_rate_limit_redis(
    client: Redis,
    key: str,
    limit: int,
    window_seconds: int,
) -> bool:
    """
    Sliding window over a Redis sorted set.

    Returns:
        True if the request is allowed
    """
    now = time.time()

    pipe = client.pipeline()
    pipe.zremrangebyscore(key, 0, now - window_seconds)
    pipe.zcard(key)
    pipe.zadd(key, {str(now): now})
    pipe.expire(key, window_seconds)
    results = await pipe.execute()

    return results[1] < limit


def _prune_memory_store(now: float, window_seconds: int) -> None:
    """Drop keys whose newest attempt has left the window."""
    cutoff = now - window_seconds
    stale = [key for key, stamps in _memory_store.items() if not stamps or stamps[-1] <= cutoff]
    for key in stale:
        del _memory_store[key]


def _check_rate_limit_memory(key: str, limit: int, window_seconds: int) -> bool:
    """
    Same algorithm in process memory. Not shared between workers.
    """
    now = time.time()
    _prune_memory_store(now, window_seconds)
    recent = [ts for ts in _memory_store.get(key, []) if ts > now - window_seconds]

    if len(recent) >= limit:
        _memory_store[key] = recent
        return False

    recent.append(now)
    _memory_store[key] = recent
    return True


async def check_rate_limit(key: str, limit: int, window_seconds: int) -> bool:
    """
    Check whether a request identified by ``key`` is within its budget.

    Tries Redis first and falls back to memory on any Redis error.
    """
    client = await get_redis()

    if client is not None:
        try:
            return await _check_rate_limit_redis(client, key, limit, window_seconds)
        except Exception as e:
            logger.warning(f"Redis rate limit check failed, using memory: {e}")

    return _check_rate_limit_memory(key, limit, window_seconds)


async def enforce_credential_rate_limit(request: Request, contact_email: str) -> None:
    """
    Limit one-time credential attempts per client address and contact email.

    Raises:
        RateLimitExceeded: When the budget is exhausted
    """
    limit, window_seconds = CREDENTIAL_ATTEMPT_LIMIT
    client_ip = request.client.host if request.client else "unknown"
    key = f"rate_limit:company_credential:{client_ip}:{contact_email.strip().lower()}"

    if not await check_rate_limit(key, limit, window_seconds):
        logger.warning(f"Credential rate limit exceeded for {client_ip}")
        raise RateLimitExceeded(limit, window_seconds)


__all__ = [
    "RateLimitExceeded",
    "check_rate_limit",
    "enforce_credential_rate_limit",
]
