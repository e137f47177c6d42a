"""Wire schemas for the plan breakdown endpoint."""
from __future__ import annotations

from typing import Any, List

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.plan_normalizer import PlannedMilestone, PlannedTask


class BreakdownRequest(BaseModel):
    """Body of ``POST /api/breakdown``.

    Every field stays untyped so bad values reach the pipeline, which answers
    with the documented 400 body or falls back to defaults.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    goal: Any = None
    deadline: Any = None
    current_date: Any = None
    preferences: Any = None
    behavioral_profile: Any = None
    context: Any = None


class BreakdownResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    goal: str
    milestones: List[PlannedMilestone] = Field(default_factory=list)
    tasks: List[PlannedTask] = Field(default_factory=list)
