"""Schemas for stored scheduling preferences."""
from __future__ import annotations

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel

from app.services.preference_normalizer import NormalizedPreferences
from app.services.time_blocks import TimeBlock, Weekday


class PreferencesUpdateRequest(BaseModel):
    available_hours_per_day: Optional[float] = None
    preferred_task_duration_minutes: Optional[int] = None
    preferred_time_blocks: Optional[List[str]] = None
    work_days: Optional[List[str]] = None

    def to_raw(self) -> Dict[str, Any]:
        return {
            "availableHoursPerDay": self.available_hours_per_day,
            "preferredTaskDurationMinutes": self.preferred_task_duration_minutes,
            "preferredTimeBlocks": self.preferred_time_blocks,
            "workDays": self.work_days,
        }


class PreferencesResponse(BaseModel):
    user_id: UUID
    available_hours_per_day: float
    preferred_task_duration_minutes: int
    preferred_time_blocks: List[TimeBlock]
    work_days: List[Weekday]
    preferred_start_time: str
    max_tasks_per_day: int
    request_id: str

    @classmethod
    def build(cls, user_id: UUID, preferences: NormalizedPreferences, request_id: Optional[str]) -> "PreferencesResponse":
        return cls(
            user_id=user_id,
            available_hours_per_day=preferences.available_hours_per_day,
            preferred_task_duration_minutes=preferences.preferred_task_duration_minutes,
            preferred_time_blocks=list(preferences.preferred_time_blocks),
            work_days=list(preferences.work_days),
            preferred_start_time=preferences.preferred_start_time,
            max_tasks_per_day=preferences.max_tasks_per_day,
            request_id=request_id or "",
        )
