"""Schemas for the observation log and the derived execution profile."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from app.services.execution_profile import ObservationKind, TaskObservation
from app.services.time_blocks import TimeBlock


class ObservationCreateRequest(BaseModel):
    task_id: UUID
    kind: ObservationKind
    goal_id: Optional[UUID] = None
    timestamp: Optional[datetime] = Field(
        default=None,
        description="When it happened, with the user's UTC offset. Defaults to now (UTC).",
    )
    estimated_minutes: Optional[int] = Field(default=None, ge=1)
    actual_minutes: Optional[int] = Field(default=None, ge=1)
    on_time: Optional[bool] = None
    previous_title: Optional[str] = None
    new_title: Optional[str] = None
    previous_minutes: Optional[int] = Field(default=None, ge=1)
    new_minutes: Optional[int] = Field(default=None, ge=1)
    previous_date: Optional[date] = None
    new_date: Optional[date] = None


class ObservationSummary(BaseModel):
    id: UUID
    task_id: UUID
    goal_id: Optional[UUID]
    kind: ObservationKind
    timestamp: datetime
    day_of_week: int
    hour_of_day: int
    time_block: Optional[TimeBlock]
    estimated_minutes: Optional[int]
    actual_minutes: Optional[int]
    on_time: Optional[bool]
    previous_title: Optional[str]
    new_title: Optional[str]
    previous_minutes: Optional[int]
    new_minutes: Optional[int]
    previous_date: Optional[date]
    new_date: Optional[date]

    @classmethod
    def from_observation(cls, observation: TaskObservation) -> "ObservationSummary":
        return cls(
            id=observation.id,
            task_id=observation.task_id,
            goal_id=observation.goal_id,
            kind=observation.kind,
            timestamp=observation.timestamp,
            day_of_week=observation.day_of_week,
            hour_of_day=observation.hour_of_day,
            time_block=observation.time_block,
            estimated_minutes=observation.estimated_minutes,
            actual_minutes=observation.actual_minutes,
            on_time=observation.on_time,
            previous_title=observation.previous_title,
            new_title=observation.new_title,
            previous_minutes=observation.previous_minutes,
            new_minutes=observation.new_minutes,
            previous_date=observation.previous_date,
            new_date=observation.new_date,
        )


class ObservationCreateResponse(BaseModel):
    observation: ObservationSummary
    sequence: int
    profile_recomputed: bool
    observation_count: int
    request_id: str


class ObservationListResponse(BaseModel):
    user_id: UUID
    observations: List[ObservationSummary]
    request_id: str


class GroupStatsSchema(BaseModel):
    key: Any
    completion_count: int
    total_count: int
    completion_rate: float
    weighted_completion_rate: float


class ExecutionProfileSchema(BaseModel):
    overall_completion_rate: float
    weighted_completion_rate: float
    average_duration_ratio: float
    time_block_stats: List[GroupStatsSchema]
    best_time_block: Optional[TimeBlock]
    worst_time_block: Optional[TimeBlock]
    day_stats: List[GroupStatsSchema]
    most_productive_day: Optional[int]
    least_productive_day: Optional[int]
    completion_rate_by_duration: Dict[str, float]
    preferred_task_duration: Optional[int]
    average_completed_task_duration: Optional[int]
    reschedule_rate: float
    edit_rate: float
    skip_rate: float
    on_time_completion_rate: Optional[float]
    observation_count: int
    completion_count: int
    first_observed_at: Optional[datetime]
    last_observed_at: Optional[datetime]


class ProfileResponse(BaseModel):
    user_id: UUID
    logged_observations: int
    profile: ExecutionProfileSchema
    summary: Optional[str]
    request_id: str
