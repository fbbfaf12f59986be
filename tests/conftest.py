"""Shared test fixtures for all test groups."""

from datetime import datetime

import pytest
from fakeredis import FakeAsyncRedis

from progress_engine.domain.hierarchy import MidGoal, Mission, SubGoal, Task
from progress_engine.services.store import InMemoryHierarchyStore


def build_mission() -> Mission:
    """Mission -> one MidGoal (100) -> one SubGoal (100) -> two Tasks (50/50, progress 0 and 100).

    t1 spans 7 days and t2 spans 3 days, so a PERIOD rebalance of the tasks gives 70/30.
    """
    return Mission(
        id="m1",
        name="Launch community cafe",
        target_percentage=60.0,
        mid_goals=[
            MidGoal(
                id="mg1",
                name="Open the space",
                weight=100.0,
                sub_goals=[
                    SubGoal(
                        id="sg1",
                        name="Renovation",
                        weight=100.0,
                        tasks=[
                            Task(
                                id="t1",
                                name="Paint walls",
                                weight=50.0,
                                progress=0.0,
                                start_date=datetime(2024, 1, 1),
                                end_date=datetime(2024, 1, 8),
                                order=0,
                            ),
                            Task(
                                id="t2",
                                name="Buy furniture",
                                weight=50.0,
                                progress=100.0,
                                start_date=datetime(2024, 1, 1),
                                end_date=datetime(2024, 1, 4),
                                order=1,
                            ),
                        ],
                    )
                ],
            )
        ],
    )


@pytest.fixture
def mission_factory():
    """Return the builder so tests can create extra independent missions."""
    return build_mission


@pytest.fixture
def sample_mission() -> Mission:
    return build_mission()


@pytest.fixture
def memory_store() -> InMemoryHierarchyStore:
    """In-memory store seeded with the sample mission."""
    return InMemoryHierarchyStore([build_mission()])


@pytest.fixture
def fake_redis():
    """Provide fakeredis instance for tests."""
    return FakeAsyncRedis(decode_responses=True)
