"""Hierarchy persistence port and its in-memory adapter.

The orchestrator talks to storage only through HierarchyStore. Every write
names the mission version it was computed from; a store must reject the write
with ConcurrencyConflictError if the version moved, and bump it otherwise.
"""

import copy
from typing import Protocol

from progress_engine.core.exceptions import ConcurrencyConflictError, NodeNotFoundError
from progress_engine.domain.hierarchy import Level, Mission, WeightMethod


class HierarchyStore(Protocol):
    async def load_mission(self, mission_id: str) -> Mission:
        """Load a full mission snapshot. Raises NodeNotFoundError."""
        ...

    async def locate_task(self, task_id: str) -> str:
        """Return the id of the mission owning a task. Raises NodeNotFoundError."""
        ...

    async def locate_group(self, level: Level, parent_id: str) -> str:
        """Return the mission id owning the sibling group at `level` under `parent_id`."""
        ...

    async def save_task_progress(
        self, mission_id: str, expected_version: int, task_id: str, progress: float
    ) -> int:
        """Persist a task's progress. Returns the new mission version."""
        ...

    async def save_weights(
        self,
        mission_id: str,
        expected_version: int,
        level: Level,
        weights: dict[str, float],
        method: WeightMethod,
    ) -> int:
        """Persist a sibling group's weights and method tag. Returns the new mission version."""
        ...


class InMemoryHierarchyStore:
    """HierarchyStore backed by a dict of Mission snapshots.

    Used when the engine runs as a plain library and in tests. Loads return
    deep copies so callers never mutate stored state by accident.
    """

    def __init__(self, missions: list[Mission] | None = None):
        self._missions: dict[str, Mission] = {}
        for mission in missions or []:
            self.add_mission(mission)

    def add_mission(self, mission: Mission) -> None:
        self._missions[mission.id] = copy.deepcopy(mission)

    def _get(self, mission_id: str) -> Mission:
        try:
            return self._missions[mission_id]
        except KeyError:
            raise NodeNotFoundError("Mission", mission_id) from None

    def _check_version(self, mission: Mission, expected_version: int) -> None:
        if mission.version != expected_version:
            raise ConcurrencyConflictError(mission.id, expected_version)

    async def load_mission(self, mission_id: str) -> Mission:
        return copy.deepcopy(self._get(mission_id))

    async def locate_task(self, task_id: str) -> str:
        for mission in self._missions.values():
            try:
                mission.find_task(task_id)
            except NodeNotFoundError:
                continue
            return mission.id
        raise NodeNotFoundError("Task", task_id)

    async def locate_group(self, level: Level, parent_id: str) -> str:
        for mission in self._missions.values():
            try:
                mission.children_of(level, parent_id)
            except NodeNotFoundError:
                continue
            return mission.id
        kind = {Level.MID_GOAL: "Mission", Level.SUB_GOAL: "MidGoal", Level.TASK: "SubGoal"}.get(level, str(level))
        raise NodeNotFoundError(kind, parent_id)

    async def save_task_progress(
        self, mission_id: str, expected_version: int, task_id: str, progress: float
    ) -> int:
        mission = self._get(mission_id)
        self._check_version(mission, expected_version)
        mission.find_task(task_id).progress = progress
        mission.version += 1
        return mission.version

    async def save_weights(
        self,
        mission_id: str,
        expected_version: int,
        level: Level,
        weights: dict[str, float],
        method: WeightMethod,
    ) -> int:
        mission = self._get(mission_id)
        self._check_version(mission, expected_version)
        finders = {
            Level.MID_GOAL: mission.find_mid_goal,
            Level.SUB_GOAL: mission.find_sub_goal,
            Level.TASK: mission.find_task,
        }
        for node_id, weight in weights.items():
            node = finders[level](node_id)
            node.weight = weight
            node.weight_method = WeightMethod(method)
        mission.version += 1
        return mission.version
