"""Re-export all models so Base.metadata sees them."""

from progress_engine.db.models.mid_goal import MidGoalRow
from progress_engine.db.models.mission import MissionRow
from progress_engine.db.models.sub_goal import SubGoalRow
from progress_engine.db.models.task import TaskRow

__all__ = [
    "MidGoalRow",
    "MissionRow",
    "SubGoalRow",
    "TaskRow",
]
