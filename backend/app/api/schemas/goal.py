"""Schemas for persisted goals."""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.api.schemas.task import TaskSummary


class GoalCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    deadline: Optional[date] = None
    context: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("title")
    @classmethod
    def trim_title(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("title must not be blank")
        return cleaned


class MilestoneSummary(BaseModel):
    id: UUID
    title: str
    target_date: date
    order: int
    completed: bool
    completed_at: Optional[datetime]


class GoalDetail(BaseModel):
    id: UUID
    user_id: UUID
    title: str
    deadline: Optional[date]
    completed: bool
    completed_at: Optional[datetime]
    created_at: datetime
    milestones: List[MilestoneSummary]
    tasks: List[TaskSummary]


class GoalCreateResponse(BaseModel):
    goal: GoalDetail
    deadline_is_default: bool
    personalized: bool
    request_id: str
