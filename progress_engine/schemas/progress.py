"""Pydantic schemas for progress and weight endpoints.

Mission-named models are canonical. The legacy Goal vocabulary exists only
here: goal_response() renames fields on the way out and nothing below the
API layer knows the old names.
"""

from typing import Literal, TypeVar

from pydantic import BaseModel, Field

from progress_engine.domain.progress import MissionProgressReport, ProgressReport
from progress_engine.services.progress_service import RebalanceResult, TaskProgressResult

T = TypeVar("T", bound=BaseModel)

LEGACY_FIELD_NAMES = {
    "mission_id": "goal_id",
    "mission_progress": "goal_progress",
}


class TaskProgressUpdate(BaseModel):
    progress: float = Field(ge=0, le=100, description="New task progress, 0-100")


class RebalanceRequest(BaseModel):
    method: Literal["EQUAL", "PERIOD"]
    override: bool = Field(default=False, description="Rebalance even if the group is MANUAL")


class NodeProgress(BaseModel):
    id: str
    level: str
    name: str = ""
    progress: float
    weight: float | None = None
    weight_method: str | None = None
    children: list["NodeProgress"] = Field(default_factory=list)


class MissionProgressResponse(BaseModel):
    mission_id: str
    name: str = ""
    mission_progress: float
    target_percentage: float
    on_target: bool
    version: int
    mid_goals: list[NodeProgress] = Field(default_factory=list)


class GoalProgressResponse(BaseModel):
    goal_id: str
    name: str = ""
    goal_progress: float
    target_percentage: float
    on_target: bool
    version: int
    mid_goals: list[NodeProgress] = Field(default_factory=list)


class TaskProgressResponse(BaseModel):
    success: bool = True
    mission_id: str
    task_id: str
    task_progress: float
    sub_goal_id: str
    sub_goal_progress: float
    mid_goal_id: str
    mid_goal_progress: float
    mission_progress: float
    version: int


class GoalTaskProgressResponse(BaseModel):
    success: bool = True
    goal_id: str
    task_id: str
    task_progress: float
    sub_goal_id: str
    sub_goal_progress: float
    mid_goal_id: str
    mid_goal_progress: float
    goal_progress: float
    version: int


class WeightEntry(BaseModel):
    id: str
    weight: float


class RebalanceResponse(BaseModel):
    success: bool = True
    mission_id: str
    level: str
    parent_id: str
    method: str
    weights: list[WeightEntry] = Field(default_factory=list, description="Sibling weights in sibling order")
    parent_progress: float
    mission_progress: float
    version: int


class GoalRebalanceResponse(BaseModel):
    success: bool = True
    goal_id: str
    level: str
    parent_id: str
    method: str
    weights: list[WeightEntry] = Field(default_factory=list)
    parent_progress: float
    goal_progress: float
    version: int


def _node(report: ProgressReport) -> NodeProgress:
    return NodeProgress(
        id=report.id,
        level=str(report.level),
        name=report.name,
        progress=report.progress,
        weight=report.weight,
        weight_method=report.weight_method,
        children=[_node(child) for child in report.children],
    )


def mission_progress_response(report: MissionProgressReport) -> MissionProgressResponse:
    return MissionProgressResponse(
        mission_id=report.id,
        name=report.name,
        mission_progress=report.progress,
        target_percentage=report.target_percentage,
        on_target=report.on_target,
        version=report.version,
        mid_goals=[_node(child) for child in report.children],
    )


def task_progress_response(result: TaskProgressResult) -> TaskProgressResponse:
    return TaskProgressResponse(
        mission_id=result.mission_id,
        task_id=result.task_id,
        task_progress=result.task_progress,
        sub_goal_id=result.sub_goal_id,
        sub_goal_progress=result.sub_goal_progress,
        mid_goal_id=result.mid_goal_id,
        mid_goal_progress=result.mid_goal_progress,
        mission_progress=result.mission_progress,
        version=result.version,
    )


def rebalance_response(result: RebalanceResult) -> RebalanceResponse:
    return RebalanceResponse(
        mission_id=result.mission_id,
        level=str(result.level),
        parent_id=result.parent_id,
        method=str(result.method),
        weights=[WeightEntry(id=node_id, weight=weight) for node_id, weight in result.weights.items()],
        parent_progress=result.parent_progress,
        mission_progress=result.mission_progress,
        version=result.version,
    )


def goal_response(response: BaseModel, legacy_model: type[T]) -> T:
    """Translate a Mission-named response into its legacy Goal-named model."""
    payload = {
        LEGACY_FIELD_NAMES.get(key, key): value
        for key, value in response.model_dump().items()
    }
    return legacy_model.model_validate(payload)
