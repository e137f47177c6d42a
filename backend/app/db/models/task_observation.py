"""Append-only behavioral observation log."""
from __future__ import annotations

from uuid import uuid4

from sqlalchemy import Boolean, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import UTCDateTime


class TaskObservationRecord(Base):
    __tablename__ = "task_observations"
    __table_args__ = (
        Index("ix_task_observations_user_id", "user_id"),
        # Serializes appends: a second writer with the same sequence fails.
        UniqueConstraint("user_id", "sequence", name="uq_task_observations_user_sequence"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sequence = Column(Integer, nullable=False)
    task_id = Column(UUID(as_uuid=True), nullable=False)
    goal_id = Column(UUID(as_uuid=True), nullable=True)
    kind = Column(String(length=20), nullable=False)
    observed_at = Column(UTCDateTime, nullable=False)
    utc_offset_minutes = Column(Integer, nullable=False, default=0)
    day_of_week = Column(Integer, nullable=False)
    hour_of_day = Column(Integer, nullable=False)
    time_block = Column(String(length=20), nullable=True)
    estimated_minutes = Column(Integer, nullable=True)
    actual_minutes = Column(Integer, nullable=True)
    on_time = Column(Boolean, nullable=True)
    previous_title = Column(Text, nullable=True)
    new_title = Column(Text, nullable=True)
    previous_minutes = Column(Integer, nullable=True)
    new_minutes = Column(Integer, nullable=True)
    previous_date = Column(Date, nullable=True)
    new_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
