"""Redis connections: plain client for session revocation, ARQ pool for jobs."""

from __future__ import annotations

import redis.asyncio as redis
from arq import create_pool
from arq.connections import ArqRedis, RedisSettings

from app.core.config import get_settings

settings = get_settings()

_redis_pool: redis.Redis | None = None
_arq_pool: ArqRedis | None = None


async def get_redis() -> redis.Redis:
    """Get or create the Redis connection."""
    global _redis_pool
    if _redis_pool is None:
        _redis_pool = redis.from_url(
            settings.redis_url,
            decode_responses=True,
        )
    return _redis_pool


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ job queue connection."""
    global _arq_pool
    if _arq_pool is None:
        _arq_pool = await create_pool(RedisSettings.from_dsn(settings.redis_url))
    return _arq_pool


async def close_redis() -> None:
    """Close all Redis connections."""
    global _redis_pool, _arq_pool
    if _redis_pool is not None:
        await _redis_pool.close()
        _redis_pool = None
    if _arq_pool is not None:
        await _arq_pool.close()
        _arq_pool = None
