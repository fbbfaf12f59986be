"""Mission hierarchy types and value invariants.

Pure domain types with no external dependencies. A Mission owns MidGoals,
a MidGoal owns SubGoals, a SubGoal owns Tasks. Only Tasks carry ground-truth
progress; every other level derives it from its children.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import TypeVar

from progress_engine.core.exceptions import InvalidProgressError, InvalidWeightError, NodeNotFoundError


class WeightMethod(StrEnum):
    """How a sibling's weight was assigned."""

    EQUAL = "EQUAL"
    PERIOD = "PERIOD"
    MANUAL = "MANUAL"


class TaskPhase(StrEnum):
    PREPARATION = "PREPARATION"
    EXECUTION = "EXECUTION"
    COMPLETED = "COMPLETED"
    REVIEW = "REVIEW"


class Level(StrEnum):
    """Hierarchy levels, root first."""

    MISSION = "mission"
    MID_GOAL = "mid_goal"
    SUB_GOAL = "sub_goal"
    TASK = "task"


@dataclass
class Task:
    id: str
    weight: float = 0.0
    progress: float = 0.0
    phase: TaskPhase = TaskPhase.PREPARATION
    weight_method: WeightMethod = WeightMethod.EQUAL
    start_date: datetime | None = None
    end_date: datetime | None = None
    order: int = 0
    name: str = ""


@dataclass
class SubGoal:
    id: str
    weight: float = 0.0
    weight_method: WeightMethod = WeightMethod.EQUAL
    start_date: datetime | None = None
    end_date: datetime | None = None
    order: int = 0
    name: str = ""
    tasks: list[Task] = field(default_factory=list)


@dataclass
class MidGoal:
    id: str
    weight: float = 0.0
    weight_method: WeightMethod = WeightMethod.EQUAL
    start_date: datetime | None = None
    end_date: datetime | None = None
    order: int = 0
    name: str = ""
    sub_goals: list[SubGoal] = field(default_factory=list)


@dataclass
class Mission:
    """Root of the hierarchy.

    version increases on every persisted write so concurrent writers touching
    the same chain can detect each other.
    """

    id: str
    name: str = ""
    target_percentage: float = 100.0
    version: int = 0
    mid_goals: list[MidGoal] = field(default_factory=list)

    def find_mid_goal(self, mid_goal_id: str) -> MidGoal:
        for mid_goal in self.mid_goals:
            if mid_goal.id == mid_goal_id:
                return mid_goal
        raise NodeNotFoundError("MidGoal", mid_goal_id)

    def find_sub_goal(self, sub_goal_id: str) -> SubGoal:
        for mid_goal in self.mid_goals:
            for sub_goal in mid_goal.sub_goals:
                if sub_goal.id == sub_goal_id:
                    return sub_goal
        raise NodeNotFoundError("SubGoal", sub_goal_id)

    def find_task(self, task_id: str) -> Task:
        for mid_goal in self.mid_goals:
            for sub_goal in mid_goal.sub_goals:
                for task in sub_goal.tasks:
                    if task.id == task_id:
                        return task
        raise NodeNotFoundError("Task", task_id)

    def chain_of(self, task_id: str) -> tuple[MidGoal, SubGoal, Task]:
        """Return the (MidGoal, SubGoal, Task) ancestor chain of a task."""
        for mid_goal in self.mid_goals:
            for sub_goal in mid_goal.sub_goals:
                for task in sub_goal.tasks:
                    if task.id == task_id:
                        return mid_goal, sub_goal, task
        raise NodeNotFoundError("Task", task_id)

    def children_of(self, level: Level, parent_id: str) -> list:
        """Return the sibling group at `level` whose parent is `parent_id`."""
        if level == Level.MID_GOAL:
            if parent_id != self.id:
                raise NodeNotFoundError("Mission", parent_id)
            return self.mid_goals
        if level == Level.SUB_GOAL:
            return self.find_mid_goal(parent_id).sub_goals
        if level == Level.TASK:
            return self.find_sub_goal(parent_id).tasks
        raise ValueError(f"{level} has no parent sibling group")


Node = Mission | MidGoal | SubGoal | Task
N = TypeVar("N", MidGoal, SubGoal, Task)

_LEVEL_BY_TYPE = {
    Mission: Level.MISSION,
    MidGoal: Level.MID_GOAL,
    SubGoal: Level.SUB_GOAL,
    Task: Level.TASK,
}


def level_of(node: Node) -> Level:
    return _LEVEL_BY_TYPE[type(node)]


def parent_level(level: Level) -> Level:
    """Level of the node that owns a sibling group at `level`."""
    order = list(Level)
    index = order.index(level)
    if index == 0:
        raise ValueError("Mission has no parent")
    return order[index - 1]


def ordered(children: list[N]) -> list[N]:
    """Stable sibling order: by `order`, ties kept in insertion (creation) order."""
    return sorted(children, key=lambda child: child.order)


def _is_number(value: object) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and not math.isnan(value)


def validate_progress(value: object) -> float:
    """Return value as float or raise InvalidProgressError."""
    if not _is_number(value) or not 0 <= value <= 100:
        raise InvalidProgressError(value)
    return float(value)


def validate_weight(value: object) -> float:
    """Return value as float or raise InvalidWeightError.

    For library callers that assign MANUAL weights themselves. The HTTP API
    only computes EQUAL and PERIOD weights, so it never raises this.
    """
    if not _is_number(value) or not 0 <= value <= 100:
        raise InvalidWeightError(value)
    return float(value)


def clamp_percentage(value: object) -> float:
    """Map malformed values to 0 and clamp the rest to [0, 100].

    Used by aggregation, which never raises on bad stored data.
    """
    if not _is_number(value) or value < 0:
        return 0.0
    return float(min(value, 100))
