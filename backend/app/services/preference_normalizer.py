"""Resolve partial scheduling preferences into one fully populated value."""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from app.services.time_blocks import WORKING_WEEK, TimeBlock, Weekday, start_time_for_block

DEFAULT_AVAILABLE_HOURS = 2.0
DEFAULT_TASK_DURATION_MINUTES = 30
DEFAULT_TIME_BLOCKS: Tuple[TimeBlock, ...] = (TimeBlock.MORNING,)
DEFAULT_WORK_DAYS: Tuple[Weekday, ...] = tuple(WORKING_WEEK)
MAX_HOURS_PER_DAY = 24.0


@dataclass(frozen=True)
class NormalizedPreferences:
    available_hours_per_day: float = DEFAULT_AVAILABLE_HOURS
    preferred_task_duration_minutes: int = DEFAULT_TASK_DURATION_MINUTES
    preferred_time_blocks: Tuple[TimeBlock, ...] = DEFAULT_TIME_BLOCKS
    work_days: Tuple[Weekday, ...] = DEFAULT_WORK_DAYS
    preferred_start_time: str = field(init=False)

    def __post_init__(self) -> None:
        first_block = self.preferred_time_blocks[0] if self.preferred_time_blocks else None
        object.__setattr__(self, "preferred_start_time", start_time_for_block(first_block))

    @property
    def max_tasks_per_day(self) -> int:
        """How many preferred-length tasks fit in the daily budget (at least one)."""
        return max(1, math.floor(self.available_hours_per_day * 60 / self.preferred_task_duration_minutes))

    def to_payload(self) -> Dict[str, Any]:
        """Wire representation, as accepted by ``POST /api/breakdown``."""
        return {
            "availableHoursPerDay": self.available_hours_per_day,
            "preferredTaskDurationMinutes": self.preferred_task_duration_minutes,
            "preferredTimeBlocks": [block.value for block in self.preferred_time_blocks],
            "workDays": [day.value for day in self.work_days],
        }


def normalize_preferences(raw: Optional[Mapping[str, Any]]) -> NormalizedPreferences:
    """Fill every missing or invalid preference with its default.

    Never raises: anything that is not a mapping is treated as "no preferences".
    """
    prefs = raw if isinstance(raw, Mapping) else {}
    return NormalizedPreferences(
        available_hours_per_day=_positive_hours(prefs.get("availableHoursPerDay")),
        preferred_task_duration_minutes=_positive_minutes(prefs.get("preferredTaskDurationMinutes")),
        preferred_time_blocks=_enum_sequence(prefs.get("preferredTimeBlocks"), TimeBlock) or DEFAULT_TIME_BLOCKS,
        work_days=_enum_sequence(prefs.get("workDays"), Weekday) or DEFAULT_WORK_DAYS,
    )


def _positive_hours(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return DEFAULT_AVAILABLE_HOURS
    try:
        hours = float(value)
    except ValueError:
        return DEFAULT_AVAILABLE_HOURS
    if not math.isfinite(hours) or hours <= 0:
        return DEFAULT_AVAILABLE_HOURS
    return min(hours, MAX_HOURS_PER_DAY)


def _positive_minutes(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return DEFAULT_TASK_DURATION_MINUTES
    try:
        number = float(value)
    except ValueError:
        return DEFAULT_TASK_DURATION_MINUTES
    if not math.isfinite(number):
        return DEFAULT_TASK_DURATION_MINUTES
    minutes = int(number)
    return minutes if minutes > 0 else DEFAULT_TASK_DURATION_MINUTES


def _enum_sequence(values: Any, enum_type) -> Tuple[Any, ...]:
    if isinstance(values, str) or not isinstance(values, Iterable):
        return ()
    resolved: List[Any] = []
    for value in values:
        if not isinstance(value, str):
            continue
        try:
            member = enum_type(value.strip().lower())
        except ValueError:
            continue
        if member not in resolved:
            resolved.append(member)
    return tuple(resolved)
