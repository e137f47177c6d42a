"""Tests for the end-to-end plan generation service."""
from __future__ import annotations

from datetime import date

import pytest

from app.core.errors import EmptyResponseError, GoalValidationError
from app.services.plan_generator import PlanRequest, generate_plan, resolve_current_date


class _Backend:
    def __init__(self, response="{}", error=None):
        self.response = response
        self.error = error
        self.prompts = []

    def complete(self, system_prompt, user_prompt):
        self.prompts.append(user_prompt)
        if self.error:
            raise self.error
        return self.response


def test_generate_plan_wires_prompt_and_normalizer() -> None:
    backend = _Backend('{"milestones": [{"title": "M1"}], "tasks": [{"title": "T1", "milestoneIndex": "0"}]}')

    plan = generate_plan(
        PlanRequest(goal=" Run a marathon ", current_date="2026-05-01"),
        backend,
    )

    assert plan.goal == "Run a marathon"
    assert plan.deadline == "2026-05-31"
    assert plan.deadline_is_default is True
    assert [milestone.model_dump(by_alias=True) for milestone in plan.milestones] == [
        {"title": "M1", "targetDate": "2026-05-01", "order": 1}
    ]
    assert plan.tasks[0].estimated_minutes == 30
    assert 'Goal: "Run a marathon"' in backend.prompts[0]


def test_invalid_goal_never_reaches_backend() -> None:
    backend = _Backend()

    with pytest.raises(GoalValidationError):
        generate_plan(PlanRequest(goal=["not", "text"]), backend)

    assert backend.prompts == []


def test_backend_errors_propagate_unchanged() -> None:
    backend = _Backend(error=EmptyResponseError("Empty response from AI"))

    with pytest.raises(EmptyResponseError):
        generate_plan(PlanRequest(goal="Run"), backend, today=date(2026, 1, 1))


@pytest.mark.parametrize(
    "value, expected",
    [
        ("2026-02-03", date(2026, 2, 3)),
        ("2026-02-03T23:00:00Z", date(2026, 2, 3)),
        ("yesterday", date(2026, 1, 1)),
        (None, date(2026, 1, 1)),
    ],
)
def test_resolve_current_date(value, expected) -> None:
    assert resolve_current_date(value, today=date(2026, 1, 1)) == expected


def test_non_text_fields_are_coerced_before_prompting() -> None:
    backend = _Backend()

    plan = generate_plan(
        PlanRequest(
            goal="Run",
            deadline=20260601,
            behavioral_profile={"completion": 0.9},
            context={"travel": "February"},
        ),
        backend,
        today=date(2026, 1, 1),
    )

    assert plan.deadline_is_default is True
    assert "completion" not in backend.prompts[0]
    assert 'Additional context: {"travel": "February"}' in backend.prompts[0]
