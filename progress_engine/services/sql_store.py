"""SqlHierarchyStore — HierarchyStore over SQLAlchemy async sessions.

Loads a mission's whole subtree in one query per level and writes through a
conditional version bump on the mission row, so two writers that read the
same version cannot both commit.
"""

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from progress_engine.core.exceptions import ConcurrencyConflictError, NodeNotFoundError
from progress_engine.db.models.mid_goal import MidGoalRow
from progress_engine.db.models.mission import MissionRow
from progress_engine.db.models.sub_goal import SubGoalRow
from progress_engine.db.models.task import TaskRow
from progress_engine.domain.hierarchy import (
    Level,
    MidGoal,
    Mission,
    SubGoal,
    Task,
    TaskPhase,
    WeightMethod,
)

_ROW_BY_LEVEL = {
    Level.MID_GOAL: MidGoalRow,
    Level.SUB_GOAL: SubGoalRow,
    Level.TASK: TaskRow,
}


class SqlHierarchyStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def load_mission(self, mission_id: str) -> Mission:
        result = await self.session.execute(
            select(MissionRow)
            .where(MissionRow.id == mission_id)
            .execution_options(populate_existing=True)
        )
        mission_row = result.scalar_one_or_none()
        if mission_row is None:
            raise NodeNotFoundError("Mission", mission_id)

        result = await self.session.execute(
            select(MidGoalRow)
            .where(MidGoalRow.mission_id == mission_id)
            .order_by(MidGoalRow.order, MidGoalRow.created_at)
            .execution_options(populate_existing=True)
        )
        mid_rows = list(result.scalars())

        sub_rows: list[SubGoalRow] = []
        if mid_rows:
            result = await self.session.execute(
                select(SubGoalRow)
                .where(SubGoalRow.mid_goal_id.in_([row.id for row in mid_rows]))
                .order_by(SubGoalRow.order, SubGoalRow.created_at)
                .execution_options(populate_existing=True)
            )
            sub_rows = list(result.scalars())

        task_rows: list[TaskRow] = []
        if sub_rows:
            result = await self.session.execute(
                select(TaskRow)
                .where(TaskRow.sub_goal_id.in_([row.id for row in sub_rows]))
                .order_by(TaskRow.order, TaskRow.created_at)
                .execution_options(populate_existing=True)
            )
            task_rows = list(result.scalars())

        tasks_by_sub: dict[str, list[Task]] = {}
        for row in task_rows:
            tasks_by_sub.setdefault(row.sub_goal_id, []).append(
                Task(
                    id=row.id,
                    name=row.name,
                    weight=row.weight,
                    progress=row.progress,
                    phase=TaskPhase(row.phase),
                    weight_method=WeightMethod(row.weight_method),
                    start_date=row.start_date,
                    end_date=row.end_date,
                    order=row.order,
                )
            )

        subs_by_mid: dict[str, list[SubGoal]] = {}
        for row in sub_rows:
            subs_by_mid.setdefault(row.mid_goal_id, []).append(
                SubGoal(
                    id=row.id,
                    name=row.name,
                    weight=row.weight,
                    weight_method=WeightMethod(row.weight_method),
                    start_date=row.start_date,
                    end_date=row.end_date,
                    order=row.order,
                    tasks=tasks_by_sub.get(row.id, []),
                )
            )

        return Mission(
            id=mission_row.id,
            name=mission_row.name,
            target_percentage=mission_row.target_percentage,
            version=mission_row.version,
            mid_goals=[
                MidGoal(
                    id=row.id,
                    name=row.name,
                    weight=row.weight,
                    weight_method=WeightMethod(row.weight_method),
                    start_date=row.start_date,
                    end_date=row.end_date,
                    order=row.order,
                    sub_goals=subs_by_mid.get(row.id, []),
                )
                for row in mid_rows
            ],
        )

    async def locate_task(self, task_id: str) -> str:
        result = await self.session.execute(
            select(MidGoalRow.mission_id)
            .join(SubGoalRow, SubGoalRow.mid_goal_id == MidGoalRow.id)
            .join(TaskRow, TaskRow.sub_goal_id == SubGoalRow.id)
            .where(TaskRow.id == task_id)
        )
        mission_id = result.scalar_one_or_none()
        if mission_id is None:
            raise NodeNotFoundError("Task", task_id)
        return mission_id

    async def locate_group(self, level: Level, parent_id: str) -> str:
        if level == Level.MID_GOAL:
            stmt = select(MissionRow.id).where(MissionRow.id == parent_id)
            kind = "Mission"
        elif level == Level.SUB_GOAL:
            stmt = select(MidGoalRow.mission_id).where(MidGoalRow.id == parent_id)
            kind = "MidGoal"
        elif level == Level.TASK:
            stmt = (
                select(MidGoalRow.mission_id)
                .join(SubGoalRow, SubGoalRow.mid_goal_id == MidGoalRow.id)
                .where(SubGoalRow.id == parent_id)
            )
            kind = "SubGoal"
        else:
            raise ValueError(f"{level} has no parent sibling group")

        mission_id = (await self.session.execute(stmt)).scalar_one_or_none()
        if mission_id is None:
            raise NodeNotFoundError(kind, parent_id)
        return mission_id

    async def _bump_version(self, mission_id: str, expected_version: int) -> int:
        result = await self.session.execute(
            update(MissionRow)
            .where(MissionRow.id == mission_id, MissionRow.version == expected_version)
            .values(version=expected_version + 1)
        )
        if result.rowcount != 1:
            await self.session.rollback()
            raise ConcurrencyConflictError(mission_id, expected_version)
        return expected_version + 1

    async def save_task_progress(
        self, mission_id: str, expected_version: int, task_id: str, progress: float
    ) -> int:
        version = await self._bump_version(mission_id, expected_version)
        await self.session.execute(update(TaskRow).where(TaskRow.id == task_id).values(progress=progress))
        await self.session.commit()
        return version

    async def save_weights(
        self,
        mission_id: str,
        expected_version: int,
        level: Level,
        weights: dict[str, float],
        method: WeightMethod,
    ) -> int:
        row_type = _ROW_BY_LEVEL[level]
        version = await self._bump_version(mission_id, expected_version)
        for node_id, weight in weights.items():
            await self.session.execute(
                update(row_type)
                .where(row_type.id == node_id)
                .values(weight=weight, weight_method=WeightMethod(method).value)
            )
        await self.session.commit()
        return version
