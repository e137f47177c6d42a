"""Schemas for task listing and lifecycle changes."""
from __future__ import annotations

from datetime import date, datetime, time
from typing import Annotated, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class TaskSummary(BaseModel):
    id: UUID
    goal_id: Optional[UUID]
    milestone_id: Optional[UUID]
    title: str
    scheduled_day: date
    scheduled_time: Optional[time]
    ends_at: Optional[datetime]
    estimated_minutes: Optional[int]
    order: Optional[int]
    ai_scheduled_day: Optional[date]
    completed: bool
    completed_at: Optional[datetime]


UtcOffsetMinutes = Annotated[
    Optional[int],
    Field(ge=-720, le=840, description="User UTC offset used when the timestamp is omitted or naive."),
]


class TaskCompleteRequest(BaseModel):
    user_id: UUID
    actual_minutes: Optional[int] = Field(default=None, ge=1)
    completed_at: Optional[datetime] = None
    utc_offset_minutes: UtcOffsetMinutes = None


class TaskSkipRequest(BaseModel):
    user_id: UUID
    skipped_at: Optional[datetime] = None
    utc_offset_minutes: UtcOffsetMinutes = None


class TaskRescheduleRequest(BaseModel):
    user_id: UUID
    scheduled_date: date
    start_time: Optional[time] = None
    requested_at: Optional[datetime] = None
    utc_offset_minutes: UtcOffsetMinutes = None


class TaskEditRequest(BaseModel):
    user_id: UUID
    title: Optional[str] = Field(default=None, max_length=500)
    estimated_minutes: Optional[int] = Field(default=None, ge=10, le=120)
    edited_at: Optional[datetime] = None
    utc_offset_minutes: UtcOffsetMinutes = None

    @model_validator(mode="after")
    def require_change(self) -> "TaskEditRequest":
        if (self.title is None or not self.title.strip()) and self.estimated_minutes is None:
            raise ValueError("title or estimated_minutes is required")
        return self


class TaskLifecycleResponse(BaseModel):
    task: TaskSummary
    observation_sequence: int
    profile_recomputed: bool
    request_id: str
