"""ProgressService — orchestrates domain logic with hierarchy persistence.

This is the integration point where the pure aggregator and rebalancer meet a
HierarchyStore. Every write:
- validates input before anything is read
- runs under the mission lock when one is configured
- persists against the mission version it read (stale writes are rejected)
- recomputes ancestor progress from the fresh snapshot

The service never retries. Callers decide whether to retry a
ConcurrencyConflictError from a fresh read.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

import structlog

from progress_engine.core.exceptions import ConcurrencyConflictError, ManualWeightingError
from progress_engine.core.locking import MissionLock
from progress_engine.core.logging import mission_context
from progress_engine.domain.hierarchy import Level, WeightMethod, ordered, parent_level, validate_progress
from progress_engine.domain.progress import (
    MissionProgressReport,
    build_progress_report,
    compute_mid_goal_progress,
    compute_mission_progress,
    compute_progress,
    compute_sub_goal_progress,
    round_percentage,
)
from progress_engine.domain.weights import apply_weights, rebalance
from progress_engine.services.store import HierarchyStore

logger = structlog.get_logger(__name__)


@dataclass
class TaskProgressResult:
    """Refreshed ancestor chain after a task progress update (rounded)."""

    mission_id: str
    task_id: str
    task_progress: float
    sub_goal_id: str
    sub_goal_progress: float
    mid_goal_id: str
    mid_goal_progress: float
    mission_progress: float
    version: int


@dataclass
class RebalanceResult:
    """New weights for one sibling group plus refreshed progress (rounded)."""

    mission_id: str
    level: Level
    parent_id: str
    method: WeightMethod
    weights: dict[str, float] = field(default_factory=dict)
    parent_progress: float = 0.0
    mission_progress: float = 0.0
    version: int = 0


class ProgressService:
    def __init__(
        self,
        store: HierarchyStore,
        lock: MissionLock | None = None,
        lock_wait_timeout: float = 5.0,
    ):
        """Initialize with a dependency-injected store.

        Args:
            store: Hierarchy persistence adapter
            lock: Optional per-mission write lock
            lock_wait_timeout: Seconds to wait for a busy mission lock
        """
        self.store = store
        self.lock = lock
        self.lock_wait_timeout = lock_wait_timeout

    @asynccontextmanager
    async def _write_guard(self, mission_id: str) -> AsyncGenerator[None, None]:
        with mission_context(mission_id):
            if self.lock is None:
                yield
                return

            async with self.lock.lock(mission_id, wait_timeout=self.lock_wait_timeout) as acquired:
                if not acquired:
                    raise ConcurrencyConflictError(mission_id)
                yield

    async def get_mission_progress(self, mission_id: str) -> float:
        mission = await self.store.load_mission(mission_id)
        return round_percentage(compute_mission_progress(mission))

    async def get_progress_report(self, mission_id: str) -> MissionProgressReport:
        mission = await self.store.load_mission(mission_id)
        return build_progress_report(mission)

    async def apply_task_progress(self, task_id: str, progress: float) -> TaskProgressResult:
        """Set a task's progress and recompute SubGoal -> MidGoal -> Mission.

        Raises:
            InvalidProgressError: progress outside [0, 100]
            NodeNotFoundError: unknown task
            ConcurrencyConflictError: another writer changed the mission
        """
        progress = validate_progress(progress)
        mission_id = await self.store.locate_task(task_id)

        async with self._write_guard(mission_id):
            mission = await self.store.load_mission(mission_id)
            mid_goal, sub_goal, task = mission.chain_of(task_id)
            task.progress = progress
            mission.version = await self.store.save_task_progress(
                mission.id, mission.version, task_id, progress
            )

        result = TaskProgressResult(
            mission_id=mission.id,
            task_id=task.id,
            task_progress=round_percentage(progress),
            sub_goal_id=sub_goal.id,
            sub_goal_progress=round_percentage(compute_sub_goal_progress(sub_goal)),
            mid_goal_id=mid_goal.id,
            mid_goal_progress=round_percentage(compute_mid_goal_progress(mid_goal)),
            mission_progress=round_percentage(compute_mission_progress(mission)),
            version=mission.version,
        )
        logger.info(
            "task_progress_applied",
            mission_id=mission.id,
            task_id=task_id,
            progress=progress,
            mission_progress=result.mission_progress,
            version=mission.version,
        )
        return result

    async def apply_rebalance(
        self,
        level: Level | str,
        parent_id: str,
        method: WeightMethod | str,
        *,
        override: bool = False,
    ) -> RebalanceResult:
        """Rebalance the sibling group at `level` under `parent_id`.

        Args:
            level: Level of the siblings (mid_goal, sub_goal or task)
            parent_id: Owner of the group (mission, mid goal or sub goal id)
            method: EQUAL or PERIOD
            override: Rebalance even if the group is tagged MANUAL

        Raises:
            ManualWeightingError: MANUAL requested, or MANUAL group without override
            NoPeriodDefinedError: PERIOD with no dated sibling
            NodeNotFoundError: unknown parent
            ConcurrencyConflictError: another writer changed the mission
        """
        level = Level(level)
        method = WeightMethod(method)
        if method == WeightMethod.MANUAL:
            raise ManualWeightingError("MANUAL weights are set by the caller, not computed")

        mission_id = await self.store.locate_group(level, parent_id)

        async with self._write_guard(mission_id):
            mission = await self.store.load_mission(mission_id)
            siblings = ordered(mission.children_of(level, parent_id))
            weights = rebalance(siblings, method, override=override)
            if weights:
                apply_weights(siblings, weights, method)
                mission.version = await self.store.save_weights(
                    mission.id, mission.version, level, weights, method
                )

        owner_level = parent_level(level)
        if owner_level == Level.MISSION:
            parent = mission
        elif owner_level == Level.MID_GOAL:
            parent = mission.find_mid_goal(parent_id)
        else:
            parent = mission.find_sub_goal(parent_id)

        result = RebalanceResult(
            mission_id=mission.id,
            level=level,
            parent_id=parent_id,
            method=method,
            weights=weights,
            parent_progress=round_percentage(compute_progress(parent)),
            mission_progress=round_percentage(compute_mission_progress(mission)),
            version=mission.version,
        )
        logger.info(
            "weights_rebalanced",
            mission_id=mission.id,
            level=str(level),
            parent_id=parent_id,
            method=str(method),
            sibling_count=len(weights),
            mission_progress=result.mission_progress,
            version=mission.version,
        )
        return result
