"""Part-of-day and weekday vocabulary shared by planning and profiling."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List


class TimeBlock(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


class Weekday(str, Enum):
    MONDAY = "monday"
    TUESDAY = "tuesday"
    WEDNESDAY = "wednesday"
    THURSDAY = "thursday"
    FRIDAY = "friday"
    SATURDAY = "saturday"
    SUNDAY = "sunday"


WORKING_WEEK: List[Weekday] = [
    Weekday.MONDAY,
    Weekday.TUESDAY,
    Weekday.WEDNESDAY,
    Weekday.THURSDAY,
    Weekday.FRIDAY,
]

BLOCK_START_TIMES = {
    TimeBlock.MORNING: "09:00",
    TimeBlock.AFTERNOON: "13:00",
    TimeBlock.EVENING: "18:00",
}
FALLBACK_START_TIME = "09:00"

# Observation day numbering: 1 = Sunday ... 7 = Saturday.
DAY_NAMES = ["", "Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def start_time_for_block(block: object) -> str:
    """Map a time block (enum or raw string) to its default ``HH:MM`` start."""
    try:
        return BLOCK_START_TIMES[TimeBlock(block)]
    except ValueError:
        return FALLBACK_START_TIME


def block_for_hour(hour: int) -> TimeBlock:
    if 5 <= hour < 12:
        return TimeBlock.MORNING
    if 12 <= hour < 17:
        return TimeBlock.AFTERNOON
    return TimeBlock.EVENING


def day_of_week(moment: datetime) -> int:
    """Return 1 (Sunday) through 7 (Saturday) for ``moment``."""
    return moment.isoweekday() % 7 + 1


def day_name(day: int) -> str:
    return DAY_NAMES[day] if 1 <= day <= 7 else "Unknown"
