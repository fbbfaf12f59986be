"""Tests for the conflict retry wrapper."""

import pytest

from progress_engine.core.exceptions import ConcurrencyConflictError, NodeNotFoundError
from progress_engine.services.retry import run_with_conflict_retry

pytestmark = pytest.mark.unit


def _flaky(failures: int, result="ok"):
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        if calls["count"] <= failures:
            raise ConcurrencyConflictError("m1", calls["count"])
        return result

    return operation, calls


async def test_succeeds_after_conflicts():
    operation, calls = _flaky(2)
    assert await run_with_conflict_retry(operation, attempts=3) == "ok"
    assert calls["count"] == 3


async def test_gives_up_after_attempts():
    operation, calls = _flaky(5)
    with pytest.raises(ConcurrencyConflictError):
        await run_with_conflict_retry(operation, attempts=2)
    assert calls["count"] == 2


async def test_other_errors_are_not_retried():
    calls = {"count": 0}

    async def operation():
        calls["count"] += 1
        raise NodeNotFoundError("Task", "t9")

    with pytest.raises(NodeNotFoundError):
        await run_with_conflict_retry(operation, attempts=3)
    assert calls["count"] == 1
