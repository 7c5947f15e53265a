"""Redis client factory, used only by the bet rate limiter.

Round, stake and balance state never touch Redis; PostgreSQL is the ledger.
An unreachable Redis therefore degrades rate limiting and nothing else.
"""

import logging

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config.settings import settings

logger = logging.getLogger(__name__)

_redis_pool: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Get or lazily create the shared client (connections open on first command)."""
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is None:
        _redis_pool = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_pool


async def ping_redis() -> bool:
    try:
        return bool(await (await get_redis()).ping())
    except RedisError as e:
        logger.warning("Redis unreachable, bet rate limiting disabled: %s", e)
        return False


async def close_redis() -> None:
    global _redis_pool  # noqa: PLW0603
    if _redis_pool is not None:
        await _redis_pool.aclose()
        _redis_pool = None
