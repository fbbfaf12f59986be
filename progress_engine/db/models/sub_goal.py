"""SubGoal model — second aggregation level, owns Tasks."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String

from progress_engine.db.base import Base


class SubGoalRow(Base):
    __tablename__ = "sub_goals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    mid_goal_id = Column(String(36), ForeignKey("mid_goals.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False, default="")

    weight = Column(Float, nullable=False, default=0.0)
    weight_method = Column(String(20), nullable=False, default="EQUAL")
    start_date = Column(DateTime(timezone=True), nullable=True)
    end_date = Column(DateTime(timezone=True), nullable=True)
    order = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
