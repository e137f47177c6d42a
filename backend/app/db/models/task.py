"""Task ORM model."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    Time,
    func,
    text as sa_text,
)
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class Task(Base):
    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_user_id", "user_id"),
        Index("ix_tasks_goal_id", "goal_id"),
        Index("ix_tasks_completed", "completed"),
        CheckConstraint(
            "estimated_minutes IS NULL OR (estimated_minutes >= 10 AND estimated_minutes <= 120)",
            name="ck_tasks_estimated_minutes_range",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    goal_id = Column(UUID(as_uuid=True), ForeignKey("goals.id", ondelete="CASCADE"), nullable=True)
    milestone_id = Column(UUID(as_uuid=True), ForeignKey("milestones.id", ondelete="SET NULL"), nullable=True)
    title = Column(Text, nullable=False)
    scheduled_day = Column(Date, nullable=False)
    scheduled_time = Column(Time, nullable=True)
    # Wall-clock end in the user's local time.
    ends_at = Column(DateTime, nullable=True)
    estimated_minutes = Column(Integer, nullable=True)
    goal_order = Column(Integer, nullable=True)
    ai_scheduled_day = Column(Date, nullable=True)
    completed = Column(Boolean, nullable=False, default=False, server_default=sa_text("false"))
    completed_at = Column(UTCDateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
