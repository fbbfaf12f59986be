"""Persistence for mission hierarchies: engine lifecycle, lock Redis pool, tables.

The row models are imported here so Base.metadata knows every table before
init_db() runs create_all.
"""

from progress_engine.db.base import Base, close_db, get_session_factory, init_db
from progress_engine.db.models import MidGoalRow, MissionRow, SubGoalRow, TaskRow
from progress_engine.db.redis import close_redis, get_redis, init_redis

__all__ = [
    "Base",
    "MidGoalRow",
    "MissionRow",
    "SubGoalRow",
    "TaskRow",
    "close_db",
    "close_redis",
    "get_redis",
    "get_session_factory",
    "init_db",
    "init_redis",
]
