"""Mission write locks: serialize hierarchy writes per Mission using Redis.

This module provides:
- Mission-level locks so only one writer recomputes a chain at a time
- Lock acquisition with optional wait
- Owner-checked release
- Automatic lock expiration
"""

import asyncio
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import redis.asyncio as redis
import structlog
from redis.exceptions import WatchError

logger = structlog.get_logger(__name__)


class MissionLock:
    """Manages per-mission write locks using Redis."""

    LOCK_PREFIX = "progress:lock:"
    DEFAULT_TTL = 30

    def __init__(self, client: redis.Redis, ttl: int | None = None, poll_interval: float = 0.05):
        self.redis = client
        self.ttl = ttl or self.DEFAULT_TTL
        self.poll_interval = poll_interval

    def _lock_key(self, mission_id: str) -> str:
        return f"{self.LOCK_PREFIX}{mission_id}"

    @staticmethod
    def _owned_by(value: str | None, owner: str) -> bool:
        return bool(value) and value.startswith(f"{owner}|")

    async def acquire(self, mission_id: str, owner: str) -> bool:
        """Attempt to acquire the write lock for a mission.

        Returns:
            True if acquired (or already held by this owner), False otherwise
        """
        key = self._lock_key(mission_id)
        lock_value = f"{owner}|{datetime.now(UTC).isoformat()}"
        if await self.redis.set(key, lock_value, nx=True, ex=self.ttl):
            return True

        if self._owned_by(await self.redis.get(key), owner):
            await self.redis.expire(key, self.ttl)
            return True

        return False

    async def release(self, mission_id: str, owner: str) -> bool:
        """Release the lock if this owner holds it.

        The owner check and the delete run in one WATCH/MULTI transaction, so a
        lock that expired and was taken by another writer is never deleted.
        """
        key = self._lock_key(mission_id)
        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                if not self._owned_by(await pipe.get(key), owner):
                    return False
                pipe.multi()
                pipe.delete(key)
                await pipe.execute()
            except WatchError:
                logger.warning("mission_lock_lost", mission_id=mission_id, owner=owner)
                return False
        return True

    async def holder(self, mission_id: str) -> str | None:
        """Return the owner currently holding the mission lock, if any."""
        current = await self.redis.get(self._lock_key(mission_id))
        if not current:
            return None
        return current.split("|", 1)[0]

    @asynccontextmanager
    async def lock(
        self,
        mission_id: str,
        owner: str | None = None,
        wait: bool = True,
        wait_timeout: float = 5.0,
    ) -> AsyncGenerator[bool, None]:
        """Context manager for mission write locking.

        Yields:
            True if the lock was acquired within wait_timeout

        Example:
            async with mission_lock.lock(mission_id) as acquired:
                if acquired:
                    ...
        """
        owner = owner or str(uuid.uuid4())
        acquired = False
        try:
            acquired = await self.acquire(mission_id, owner)
            if not acquired and wait:
                loop = asyncio.get_running_loop()
                deadline = loop.time() + wait_timeout
                while not acquired and loop.time() < deadline:
                    await asyncio.sleep(self.poll_interval)
                    acquired = await self.acquire(mission_id, owner)

            if not acquired:
                logger.warning("mission_lock_busy", mission_id=mission_id, owner=owner)

            yield acquired

        finally:
            if acquired:
                await self.release(mission_id, owner)
