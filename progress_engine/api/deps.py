"""FastAPI dependencies for the progress routes."""

from collections.abc import AsyncGenerator

from progress_engine.core.config import get_settings
from progress_engine.core.locking import MissionLock
from progress_engine.db.base import get_session_factory
from progress_engine.db.redis import get_redis
from progress_engine.services.progress_service import ProgressService
from progress_engine.services.sql_store import SqlHierarchyStore


def get_mission_lock() -> MissionLock | None:
    """Return a mission lock when locking is enabled and Redis is connected."""
    settings = get_settings()
    client = get_redis()
    if not settings.mission_lock_enabled or client is None:
        return None
    return MissionLock(client, ttl=settings.mission_lock_ttl)


async def get_progress_service() -> AsyncGenerator[ProgressService, None]:
    """One ProgressService per request, bound to its own session."""
    settings = get_settings()
    async with get_session_factory()() as session:
        yield ProgressService(
            SqlHierarchyStore(session),
            lock=get_mission_lock(),
            lock_wait_timeout=settings.mission_lock_wait_timeout,
        )


def get_retry_attempts() -> int:
    return get_settings().conflict_retry_attempts
