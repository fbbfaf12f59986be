"""Shared Redis client used for mission write locks."""

import redis.asyncio as redis

from progress_engine.core.config import get_settings

_redis: redis.Redis | None = None


async def init_redis(url: str | None = None) -> None:
    """Connect the shared Redis client and verify it answers."""
    global _redis

    if _redis is not None:
        return

    _redis = redis.from_url(
        url or get_settings().redis_url,
        encoding="utf-8",
        decode_responses=True,
    )
    await _redis.ping()


async def close_redis() -> None:
    global _redis

    if _redis is not None:
        await _redis.aclose()
        _redis = None


def get_redis() -> redis.Redis | None:
    """Return the shared Redis client, or None when locking runs without Redis."""
    return _redis
