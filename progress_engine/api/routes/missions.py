"""Mission progress and weight endpoints.

GET  /api/missions/{mission_id}                              - Full progress view
GET  /api/missions/{mission_id}/progress                     - Mission progress only
PUT  /api/missions/tasks/{task_id}/progress                  - Update a task, refresh ancestors
POST /api/missions/{mission_id}/recalculate-weights          - Rebalance MidGoals
POST /api/missions/mid-goals/{mid_goal_id}/recalculate-weights - Rebalance SubGoals
POST /api/missions/sub-goals/{sub_goal_id}/recalculate-weights - Rebalance Tasks
"""

import structlog
from fastapi import APIRouter, Depends

from progress_engine.api.deps import get_progress_service, get_retry_attempts
from progress_engine.domain.hierarchy import Level
from progress_engine.schemas.progress import (
    MissionProgressResponse,
    RebalanceRequest,
    RebalanceResponse,
    TaskProgressResponse,
    TaskProgressUpdate,
    mission_progress_response,
    rebalance_response,
    task_progress_response,
)
from progress_engine.services.progress_service import ProgressService
from progress_engine.services.retry import run_with_conflict_retry

router = APIRouter()
logger = structlog.get_logger(__name__)


async def read_mission(service: ProgressService, mission_id: str) -> MissionProgressResponse:
    report = await service.get_progress_report(mission_id)
    return mission_progress_response(report)


async def update_task_progress(
    service: ProgressService, task_id: str, body: TaskProgressUpdate, attempts: int
) -> TaskProgressResponse:
    result = await run_with_conflict_retry(
        lambda: service.apply_task_progress(task_id, body.progress), attempts
    )
    return task_progress_response(result)


async def recalculate_weights(
    service: ProgressService, level: Level, parent_id: str, body: RebalanceRequest, attempts: int
) -> RebalanceResponse:
    result = await run_with_conflict_retry(
        lambda: service.apply_rebalance(level, parent_id, body.method, override=body.override), attempts
    )
    return rebalance_response(result)


@router.get("/{mission_id}", response_model=MissionProgressResponse)
async def get_mission(
    mission_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> MissionProgressResponse:
    """Mission with every MidGoal, SubGoal and Task progress, rounded to 2 decimals."""
    return await read_mission(service, mission_id)


@router.get("/{mission_id}/progress")
async def get_mission_progress(
    mission_id: str,
    service: ProgressService = Depends(get_progress_service),
) -> dict:
    return {"mission_id": mission_id, "mission_progress": await service.get_mission_progress(mission_id)}


@router.put("/tasks/{task_id}/progress", response_model=TaskProgressResponse)
async def put_task_progress(
    task_id: str,
    body: TaskProgressUpdate,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> TaskProgressResponse:
    return await update_task_progress(service, task_id, body, attempts)


@router.post("/{mission_id}/recalculate-weights", response_model=RebalanceResponse)
async def recalculate_mid_goal_weights(
    mission_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> RebalanceResponse:
    return await recalculate_weights(service, Level.MID_GOAL, mission_id, body, attempts)


@router.post("/mid-goals/{mid_goal_id}/recalculate-weights", response_model=RebalanceResponse)
async def recalculate_sub_goal_weights(
    mid_goal_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> RebalanceResponse:
    return await recalculate_weights(service, Level.SUB_GOAL, mid_goal_id, body, attempts)


@router.post("/sub-goals/{sub_goal_id}/recalculate-weights", response_model=RebalanceResponse)
async def recalculate_task_weights(
    sub_goal_id: str,
    body: RebalanceRequest,
    service: ProgressService = Depends(get_progress_service),
    attempts: int = Depends(get_retry_attempts),
) -> RebalanceResponse:
    return await recalculate_weights(service, Level.TASK, sub_goal_id, body, attempts)
