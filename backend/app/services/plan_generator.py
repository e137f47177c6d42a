"""End-to-end plan generation: preferences -> prompt -> backend -> normalized plan."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Mapping, Optional

from app.core.config import settings
from app.core.errors import GoalValidationError, PlanningError
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.plan_normalizer import PlannedMilestone, PlannedTask, normalize_plan
from app.services.plan_prompt import compose_plan_prompt
from app.services.planning_backend import PlanningBackend
from app.services.preference_normalizer import NormalizedPreferences, normalize_preferences

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlanRequest:
    """One planning request as received; every field but ``goal`` may be junk."""

    goal: Any
    deadline: Any = None
    current_date: Any = None
    preferences: Optional[Mapping[str, Any]] = None
    behavioral_profile: Any = None
    context: Any = None


@dataclass(frozen=True)
class GeneratedPlan:
    goal: str
    current_date: date
    deadline: str
    deadline_is_default: bool
    preferences: NormalizedPreferences
    milestones: List[PlannedMilestone]
    tasks: List[PlannedTask]


def validate_goal(goal: Any) -> str:
    """Return the trimmed goal or raise ``GoalValidationError``."""
    if not isinstance(goal, str) or not goal.strip():
        raise GoalValidationError("Goal is required and must be a non-empty string")
    return goal.strip()


def resolve_current_date(value: Any, *, today: Optional[date] = None) -> date:
    """Parse the caller's ``currentDate``; fall back to today when absent or unreadable."""
    fallback = today or date.today()
    if not isinstance(value, str) or not value.strip():
        return fallback
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        logger.info("Ignoring unparseable currentDate %r", value)
        return fallback


def optional_text(value: Any) -> Optional[str]:
    """Keep strings only; a number or object in a text field counts as absent."""
    return value if isinstance(value, str) else None


def context_text(value: Any) -> Optional[str]:
    """Render free-form context of any JSON type as prompt text."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def generate_plan(
    request: PlanRequest,
    backend: PlanningBackend,
    *,
    request_id: Optional[str] = None,
    today: Optional[date] = None,
) -> GeneratedPlan:
    """Run one stateless planning request.

    Raises ``GoalValidationError`` before any backend call, and the backend's
    ``PlanningError`` subclasses unchanged. Nothing is retried here.
    """
    goal = validate_goal(request.goal)
    preferences = normalize_preferences(request.preferences)
    current = resolve_current_date(request.current_date, today=today)
    behavioral_profile = optional_text(request.behavioral_profile)
    prompt = compose_plan_prompt(
        goal,
        current_date=current,
        preferences=preferences,
        deadline=optional_text(request.deadline),
        behavioral_profile=behavioral_profile,
        context=context_text(request.context),
        default_deadline_days=settings.default_deadline_days,
    )

    trace_metadata = {
        "goal_length": len(goal),
        "deadline_is_default": prompt.deadline_is_default,
        "personalized": bool(behavioral_profile and behavioral_profile.strip()),
        "max_tasks_per_day": prompt.max_tasks_per_day,
    }
    with trace("plan.generation", metadata=trace_metadata, request_id=request_id) as plan_trace:
        try:
            raw_text = backend.complete(prompt.system, prompt.user)
            plan = normalize_plan(raw_text, current_date=current, preferences=preferences)
        except PlanningError as exc:
            logger.warning("Plan generation failed (%s): %s", type(exc).__name__, exc)
            log_metric("plan.generation.failure", 1, metadata={"error": type(exc).__name__})
            raise

        if plan_trace:
            plan_trace.update(
                metadata={
                    **trace_metadata,
                    "milestone_count": len(plan.milestones),
                    "task_count": len(plan.tasks),
                }
            )

    logger.info(
        "Generated plan with %d milestones and %d tasks (deadline %s%s)",
        len(plan.milestones),
        len(plan.tasks),
        prompt.deadline,
        ", default" if prompt.deadline_is_default else "",
    )
    log_metric("plan.generation.tasks_generated", len(plan.tasks))
    log_metric("plan.generation.milestones_generated", len(plan.milestones))

    return GeneratedPlan(
        goal=goal,
        current_date=current,
        deadline=prompt.deadline,
        deadline_is_default=prompt.deadline_is_default,
        preferences=preferences,
        milestones=plan.milestones,
        tasks=plan.tasks,
    )
