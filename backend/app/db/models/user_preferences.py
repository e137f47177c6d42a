"""Stored scheduling preferences, one row per user."""
from __future__ import annotations

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, func
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.db.types import JSONBCompat


class UserPreferences(Base):
    __tablename__ = "user_preferences"

    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    available_hours_per_day = Column(Float, nullable=False)
    preferred_task_duration_minutes = Column(Integer, nullable=False)
    # Ordered lists of enum values, already normalized.
    preferred_time_blocks = Column(JSONBCompat, nullable=False)
    work_days = Column(JSONBCompat, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
