"""Orchestration-layer retry for version conflicts.

Each attempt calls the operation again, so the service re-reads the mission
from the store. A recompute is never resumed from partial state.
"""

from collections.abc import Awaitable, Callable
from typing import TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from progress_engine.core.exceptions import ConcurrencyConflictError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


async def run_with_conflict_retry(operation: Callable[[], Awaitable[T]], attempts: int = 3) -> T:
    """Run `operation`, retrying on ConcurrencyConflictError up to `attempts` times."""
    async for attempt in AsyncRetrying(
        retry=retry_if_exception_type(ConcurrencyConflictError),
        stop=stop_after_attempt(max(attempts, 1)),
        wait=wait_exponential(multiplier=0.05, max=1),
        reraise=True,
        before_sleep=lambda rs: logger.warning(
            "concurrency_conflict_retrying",
            attempt=rs.attempt_number,
            sleep_seconds=rs.next_action.sleep,
        ),
    ):
        with attempt:
            result = await operation()
    return result
