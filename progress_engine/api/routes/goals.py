"""Legacy Goal endpoints.

Goal is the old name of Mission. Every route forwards to the Mission handlers
unchanged and only renames response fields (mission_* -> goal_*).
"""

from fastapi import APIRouter, Depends

from progress_engine.api.deps import get_progress_service, get_retry_attempts
from progress_engine.api.routes.missions import read_mission, recalculate_weights, update_task_progress
from progress_engine.domain.hierarchy import Level
from progress_engine.schemas.progress import (
    GoalProgressResponse,
    GoalRebalanceResponse,
    GoalTaskProgressResponse,
    RebalanceRequest,
    TaskProgressUpdate,
    goal_response,
)
from progress_engine.services.progress_service import ProgressService

router = APIRouter()


@router.get("/{goal_id}", response_model=GoalProgressResponse)
async def get_goal(
    goal_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> GoalProgressResponse:
    return goal_response(await read_mission(service, goal_id), GoalProgressResponse)


@router.get("/{goal_id}/progress")
async def get_goal_progress(
    goal_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> dict:
    return {"goal_id": goal_id, "goal_progress": await service.get_mission_progress(goal_id)}


@router.put("/tasks/{task_id}/progress", response_model=GoalTaskProgressResponse)
async def put_goal_task_progress(
    task_id: str,
    body: TaskProgressUpdate,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> GoalTaskProgressResponse:
    response = await update_task_progress(service, task_id, body, attempts)
    return goal_response(response, GoalTaskProgressResponse)


@router.post("/{goal_id}/recalculate-weights", response_model=GoalRebalanceResponse)
async def recalculate_goal_mid_goal_weights(
    goal_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> GoalRebalanceResponse:
    response = await recalculate_weights(service, Level.MID_GOAL, goal_id, body, attempts)
    return goal_response(response, GoalRebalanceResponse)


@router.post("/mid-goals/{mid_goal_id}/recalculate-weights", response_model=GoalRebalanceResponse)
async def recalculate_goal_sub_goal_weights(
    mid_goal_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> GoalRebalanceResponse:
    response = await recalculate_weights(service, Level.SUB_GOAL, mid_goal_id, body, attempts)
    return goal_response(response, GoalRebalanceResponse)


@router.post("/sub-goals/{sub_goal_id}/recalculate-weights", response_model=GoalRebalanceResponse)
async def recalculate_goal_task_weights(
    sub_goal_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> GoalRebalanceResponse:
    response = await recalculate_weights(service, Level.TASK, sub_goal_id, body, attempts)
    return goal_response(response, GoalRebalanceResponse)
