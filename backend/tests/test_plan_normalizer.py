"""Tests for repairing backend plan output."""
from __future__ import annotations

import json
from datetime import date

import pytest

from app.core.errors import MalformedResponseError
from app.services.plan_normalizer import NormalizedPlan, PlannedTask, normalize_plan, parse_int
from app.services.preference_normalizer import normalize_preferences

TODAY = date(2026, 1, 10)
PREFS = normalize_preferences({"preferredTaskDurationMinutes": 25, "preferredTimeBlocks": ["afternoon"]})


def _normalize(payload) -> dict:
    raw = payload if isinstance(payload, str) else json.dumps(payload)
    return normalize_plan(raw, current_date=TODAY, preferences=PREFS).model_dump(by_alias=True)


def test_missing_milestones_and_short_task_are_repaired() -> None:
    plan = _normalize({"tasks": [{"title": "Research", "estimatedMinutes": 5}]})

    assert plan["milestones"] == []
    assert plan["tasks"] == [
        {
            "title": "Research",
            "estimatedMinutes": 10,
            "scheduledDate": "2026-01-10",
            "scheduledStartTime": "13:00",
            "milestoneIndex": 0,
            "order": 1,
        }
    ]


def test_every_field_gets_a_default() -> None:
    plan = _normalize({"milestones": [{}, "junk"], "tasks": [{}, None]})

    assert plan["milestones"] == [
        {"title": "Milestone", "targetDate": "2026-01-10", "order": 1},
        {"title": "Milestone", "targetDate": "2026-01-10", "order": 2},
    ]
    assert [task["title"] for task in plan["tasks"]] == ["Untitled task", "Untitled task"]
    assert [task["estimatedMinutes"] for task in plan["tasks"]] == [25, 25]
    assert [task["order"] for task in plan["tasks"]] == [1, 2]


def test_lenient_numbers_and_bounds() -> None:
    plan = _normalize(
        {
            "milestones": [{"title": "  Kickoff  ", "targetDate": "2026-02-01T10:00:00Z", "order": "3"}],
            "tasks": [
                {"estimatedMinutes": "45 min", "milestoneIndex": -2, "order": 0},
                {"estimatedMinutes": 500, "milestoneIndex": "1", "order": 7.8},
                {"estimatedMinutes": 0, "scheduledStartTime": "7:05", "scheduledDate": "soon"},
            ],
        }
    )

    assert plan["milestones"][0] == {"title": "Kickoff", "targetDate": "2026-02-01", "order": 3}
    first, second, third = plan["tasks"]
    assert (first["estimatedMinutes"], first["milestoneIndex"], first["order"]) == (45, 0, 1)
    assert (second["estimatedMinutes"], second["milestoneIndex"], second["order"]) == (120, 1, 7)
    assert third["estimatedMinutes"] == 25
    assert third["scheduledStartTime"] == "07:05"
    assert third["scheduledDate"] == "2026-01-10"


def test_normalizing_twice_is_a_no_op() -> None:
    once = _normalize(
        {
            "milestones": [{"title": "A", "order": "x"}],
            "tasks": [{"title": 12, "estimatedMinutes": 300, "scheduledStartTime": "25:00"}],
        }
    )

    assert _normalize(once) == once


@pytest.mark.parametrize("raw", ["not json", "[]", '"text"', ""])
def test_unparseable_or_non_object_payload_is_rejected(raw) -> None:
    with pytest.raises(MalformedResponseError):
        _normalize(raw)


@pytest.mark.parametrize(
    "value, expected",
    [(45, 45), (45.9, 45), ("45", 45), (" -3 apples", -3), ("abc", None), (True, None), (None, None)],
)
def test_parse_int(value, expected) -> None:
    assert parse_int(value) == expected


def test_normalized_plan_is_a_pydantic_model_with_snake_case_fields() -> None:
    plan = normalize_plan(
        '{"tasks": [{"title": "Draft", "estimatedMinutes": 40, "milestoneIndex": 2}]}',
        current_date=TODAY,
        preferences=PREFS,
    )

    assert isinstance(plan, NormalizedPlan)
    task = plan.tasks[0]
    assert isinstance(task, PlannedTask)
    assert (task.estimated_minutes, task.milestone_index, task.scheduled_date) == (40, 2, "2026-01-10")
    assert "estimated_minutes" in task.model_dump()


def test_task_validated_without_context_uses_default_preferences() -> None:
    task = PlannedTask.model_validate({"title": "Walk", "scheduledDate": "2026-03-01"})

    assert task.estimated_minutes == 30
    assert task.scheduled_start_time == "09:00"
    assert task.order == 1
