"""Tests for preference defaulting."""
from __future__ import annotations

import pytest

from app.services.preference_normalizer import normalize_preferences
from app.services.time_blocks import TimeBlock, Weekday


def test_absent_preferences_use_defaults() -> None:
    prefs = normalize_preferences(None)

    assert prefs.to_payload() == {
        "availableHoursPerDay": 2.0,
        "preferredTaskDurationMinutes": 30,
        "preferredTimeBlocks": ["morning"],
        "workDays": ["monday", "tuesday", "wednesday", "thursday", "friday"],
    }
    assert prefs.preferred_start_time == "09:00"
    assert prefs.max_tasks_per_day == 4


@pytest.mark.parametrize(
    "blocks, expected_start",
    [
        (["afternoon", "morning"], "13:00"),
        (["evening"], "18:00"),
        (["Morning "], "09:00"),
        (["midnight"], "09:00"),
    ],
)
def test_start_time_follows_first_block(blocks, expected_start) -> None:
    prefs = normalize_preferences({"preferredTimeBlocks": blocks})

    assert prefs.preferred_start_time == expected_start


def test_garbage_values_fall_back_per_field() -> None:
    prefs = normalize_preferences(
        {
            "availableHoursPerDay": -3,
            "preferredTaskDurationMinutes": True,
            "preferredTimeBlocks": "morning",
            "workDays": ["Saturday", "sunday", "saturday", "funday", 7],
        }
    )

    assert prefs.available_hours_per_day == 2.0
    assert prefs.preferred_task_duration_minutes == 30
    assert prefs.preferred_time_blocks == (TimeBlock.MORNING,)
    assert prefs.work_days == (Weekday.SATURDAY, Weekday.SUNDAY)


def test_non_mapping_input_is_treated_as_missing() -> None:
    assert normalize_preferences(["morning"]) == normalize_preferences({})


def test_hours_are_capped_and_minutes_truncated() -> None:
    prefs = normalize_preferences({"availableHoursPerDay": 30, "preferredTaskDurationMinutes": 45.9})

    assert prefs.available_hours_per_day == 24.0
    assert prefs.preferred_task_duration_minutes == 45


def test_max_tasks_per_day_never_drops_below_one() -> None:
    prefs = normalize_preferences({"availableHoursPerDay": 0.25, "preferredTaskDurationMinutes": 90})

    assert prefs.max_tasks_per_day == 1
