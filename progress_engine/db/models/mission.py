"""Mission model — root of the goal hierarchy (legacy name: Goal)."""

import uuid
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, Float, Integer, String

from progress_engine.db.base import Base


class MissionRow(Base):
    __tablename__ = "missions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False, default="")
    target_percentage = Column(Float, nullable=False, default=100.0)

    # Bumped on every hierarchy write under this mission (optimistic concurrency)
    version = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), onupdate=lambda: datetime.now(UTC)
    )
