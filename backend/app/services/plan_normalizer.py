"""Validation and repair of raw planning-backend output.

Backend output is untrusted even in JSON mode. Only an unparseable payload or a
non-object top level fails the request; every per-field defect is repaired with
a default so a degraded plan still reaches the user.
"""
from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, ValidationInfo, field_validator
from pydantic.alias_generators import to_camel

from app.core.errors import MalformedResponseError
from app.services.preference_normalizer import NormalizedPreferences

MIN_TASK_MINUTES = 10
MAX_TASK_MINUTES = 120
DEFAULT_MILESTONE_TITLE = "Milestone"
DEFAULT_TASK_TITLE = "Untitled task"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_CLOCK_TIME = re.compile(r"^\s*(\d{1,2}):(\d{2})")


class PlannedMilestone(BaseModel):
    """Milestone as returned to clients, keyed in camelCase on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(default=DEFAULT_MILESTONE_TITLE, validate_default=True)
    target_date: str = Field(default="", validate_default=True)
    order: int = Field(default=1, ge=1)

    @field_validator("title", mode="before")
    @classmethod
    def _repair_title(cls, value: Any) -> str:
        return _coerce_title(value, DEFAULT_MILESTONE_TITLE)

    @field_validator("target_date", mode="before")
    @classmethod
    def _repair_target_date(cls, value: Any, info: ValidationInfo) -> str:
        return _coerce_date(value, _context_date(info))

    @field_validator("order", mode="before")
    @classmethod
    def _repair_order(cls, value: Any) -> int:
        return _coerce_order(value, 0)


class PlannedTask(BaseModel):
    """Scheduled task as returned to clients."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str = Field(default=DEFAULT_TASK_TITLE, validate_default=True)
    estimated_minutes: int = Field(default=None, ge=MIN_TASK_MINUTES, le=MAX_TASK_MINUTES, validate_default=True)
    scheduled_date: str = Field(default="", validate_default=True)
    scheduled_start_time: str = Field(default="", validate_default=True)
    milestone_index: int = Field(default=0, ge=0, validate_default=True)
    order: int = Field(default=1, ge=1)

    @field_validator("title", mode="before")
    @classmethod
    def _repair_title(cls, value: Any) -> str:
        return _coerce_title(value, DEFAULT_TASK_TITLE)

    @field_validator("estimated_minutes", mode="before")
    @classmethod
    def _repair_minutes(cls, value: Any, info: ValidationInfo) -> int:
        minutes = parse_int(value)
        if not minutes:
            minutes = _context_preferences(info).preferred_task_duration_minutes
        return clamp_minutes(minutes)

    @field_validator("scheduled_date", mode="before")
    @classmethod
    def _repair_scheduled_date(cls, value: Any, info: ValidationInfo) -> str:
        return _coerce_date(value, _context_date(info))

    @field_validator("scheduled_start_time", mode="before")
    @classmethod
    def _repair_start_time(cls, value: Any, info: ValidationInfo) -> str:
        return _coerce_clock(value, _context_preferences(info).preferred_start_time)

    @field_validator("milestone_index", mode="before")
    @classmethod
    def _repair_milestone_index(cls, value: Any) -> int:
        return max(parse_int(value) or 0, 0)

    @field_validator("order", mode="before")
    @classmethod
    def _repair_order(cls, value: Any) -> int:
        return _coerce_order(value, 0)


class NormalizedPlan(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    milestones: List[PlannedMilestone] = Field(default_factory=list)
    tasks: List[PlannedTask] = Field(default_factory=list)

    @field_validator("milestones", "tasks", mode="before")
    @classmethod
    def _positioned_entries(cls, value: Any) -> List[Any]:
        # A missing or unusable order falls back to the 1-based list position.
        return [_positioned(entry, index) for index, entry in enumerate(_as_list(value))]


def normalize_plan(raw_text: str, *, current_date: date, preferences: NormalizedPreferences) -> NormalizedPlan:
    """Parse ``raw_text`` and return a bounded, fully defaulted plan."""
    try:
        return NormalizedPlan.model_validate_json(
            raw_text,
            context={"current_date": current_date, "preferences": preferences},
        )
    except ValidationError as exc:
        raise MalformedResponseError("Could not parse AI response as JSON") from exc


def clamp_minutes(minutes: int) -> int:
    return min(max(minutes, MIN_TASK_MINUTES), MAX_TASK_MINUTES)


def parse_int(value: Any) -> Optional[int]:
    """Lenient integer parse: ``45``, ``45.9``, ``"45"`` and ``"45 min"`` all give 45."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if isinstance(value, str):
        match = _LEADING_INT.match(value)
        return int(match.group(1)) if match else None
    return None


def _context_date(info: ValidationInfo) -> date:
    context = info.context or {}
    return context.get("current_date") or date.today()


def _context_preferences(info: ValidationInfo) -> NormalizedPreferences:
    context = info.context or {}
    return context.get("preferences") or NormalizedPreferences()


def _positioned(entry: Any, index: int) -> Any:
    if isinstance(entry, BaseModel):
        return entry
    data: Dict[str, Any] = dict(entry) if isinstance(entry, dict) else {}
    data["order"] = _coerce_order(data.get("order"), index)
    return data


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _coerce_title(value: Any, default: str) -> str:
    if value is None or isinstance(value, (dict, list)):
        return default
    text = str(value).strip()
    return text or default


def _coerce_order(value: Any, index: int) -> int:
    order = parse_int(value)
    if order is None or order < 1:
        return index + 1
    return order


def _coerce_date(value: Any, fallback: date) -> str:
    if isinstance(value, str):
        candidate = value.strip()[:10]
        try:
            return date.fromisoformat(candidate).isoformat()
        except ValueError:
            pass
    return fallback.isoformat()


def _coerce_clock(value: Any, fallback: str) -> str:
    if isinstance(value, str):
        match = _CLOCK_TIME.match(value)
        if match:
            hour, minute = int(match.group(1)), int(match.group(2))
            if hour < 24 and minute < 60:
                return f"{hour:02d}:{minute:02d}"
    return fallback
