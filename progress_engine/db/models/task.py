"""Task model — leaf carrying the only stored progress value (legacy name: GoalTask)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String

from progress_engine.db.base import Base


class TaskRow(Base):
    __tablename__ = "goal_tasks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    sub_goal_id = Column(String(36), ForeignKey("sub_goals.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")

    weight = Column(Float, nullable=False, default=0.0)
    weight_method = Column(String(20), nullable=False, default="EQUAL")
    progress = Column(Float, nullable=False, default=0.0)
    phase = Column(String(20), nullable=False, default="PREPARATION")
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
