"""Deterministic progress computation functions.

Pure functions with no external dependencies. Progress rolls up bottom-up as
a weighted mean of the children; weights are relative shares within a sibling
set, so they need not sum to 100. Rounding happens only in round_percentage.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass, field

from progress_engine.domain.hierarchy import (
    Level,
    MidGoal,
    Mission,
    Node,
    SubGoal,
    Task,
    clamp_percentage,
    level_of,
    ordered,
)


def weighted_mean(pairs: Iterable[tuple[float, float]]) -> float:
    """Weighted mean of (value, weight) pairs.

    Returns 0.0 for an empty input or a zero total weight.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for value, weight in pairs:
        weight = clamp_percentage(weight)
        total_weight += weight
        weighted_sum += value * weight

    if total_weight == 0:
        return 0.0

    return weighted_sum / total_weight


def compute_task_progress(task: Task) -> float:
    return clamp_percentage(task.progress)


def compute_sub_goal_progress(sub_goal: SubGoal) -> float:
    return weighted_mean(
        (compute_task_progress(task), task.weight) for task in ordered(sub_goal.tasks)
    )


def compute_mid_goal_progress(mid_goal: MidGoal) -> float:
    return weighted_mean(
        (compute_sub_goal_progress(sub_goal), sub_goal.weight)
        for sub_goal in ordered(mid_goal.sub_goals)
    )


def compute_mission_progress(mission: Mission) -> float:
    return weighted_mean(
        (compute_mid_goal_progress(mid_goal), mid_goal.weight)
        for mid_goal in ordered(mission.mid_goals)
    )


_BY_LEVEL = {
    Level.TASK: compute_task_progress,
    Level.SUB_GOAL: compute_sub_goal_progress,
    Level.MID_GOAL: compute_mid_goal_progress,
    Level.MISSION: compute_mission_progress,
}


def compute_progress(node: Node) -> float:
    """Unrounded progress (0-100) of any hierarchy node.

    Pure function -- a function of the subtree snapshot only.
    """
    return _BY_LEVEL[level_of(node)](node)


def round_percentage(value: float) -> float:
    """Round half-up to 2 decimals. Apply only when a value leaves the engine."""
    return math.floor(value * 100 + 0.5) / 100


@dataclass
class ProgressReport:
    """Rounded progress for one node and its descendants."""

    id: str
    level: Level
    name: str
    progress: float
    weight: float | None = None
    weight_method: str | None = None
    children: list["ProgressReport"] = field(default_factory=list)


@dataclass
class MissionProgressReport(ProgressReport):
    target_percentage: float = 100.0
    on_target: bool = False
    version: int = 0


def _node_report(node: MidGoal | SubGoal | Task) -> ProgressReport:
    if isinstance(node, Task):
        children = []
    elif isinstance(node, SubGoal):
        children = [_node_report(task) for task in ordered(node.tasks)]
    else:
        children = [_node_report(sub_goal) for sub_goal in ordered(node.sub_goals)]

    return ProgressReport(
        id=node.id,
        level=level_of(node),
        name=node.name,
        progress=round_percentage(compute_progress(node)),
        weight=node.weight,
        weight_method=str(node.weight_method),
        children=children,
    )


def build_progress_report(mission: Mission) -> MissionProgressReport:
    """Full progress view of a mission, every level rounded to 2 decimals."""
    progress = compute_mission_progress(mission)
    return MissionProgressReport(
        id=mission.id,
        level=Level.MISSION,
        name=mission.name,
        progress=round_percentage(progress),
        children=[_node_report(mid_goal) for mid_goal in ordered(mission.mid_goals)],
        target_percentage=mission.target_percentage,
        on_target=progress >= mission.target_percentage,
        version=mission.version,
    )
