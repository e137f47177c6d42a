"""Deterministic instruction payloads for the planning backend."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional

from app.core.errors import GoalValidationError
from app.services.preference_normalizer import NormalizedPreferences

DEFAULT_DEADLINE_DAYS = 30

SYSTEM_PROMPT = """You are an intelligent goal planning assistant. When given a goal with a deadline, you create a realistic plan that spreads work evenly across the available time.

Your job is to break down goals into:
1. MILESTONES: 2-5 major checkpoints, evenly distributed between now and the deadline
2. TASKS: Specific tasks scheduled CLOSE TO their milestone's target date (not all at the start)

CRITICAL SCHEDULING RULES:
- Tasks should be scheduled in the days/weeks LEADING UP TO their milestone target date
- Do NOT frontload all tasks at the beginning
- Spread tasks evenly across the entire timeline
- Each milestone should have tasks scheduled in the 1-2 weeks before its target date
- Later milestones = later scheduled tasks

Example: If Milestone 2 targets March 15, schedule its tasks in late February/early March, NOT in January.

Other rules:
1. Return ONLY valid JSON - no markdown, no explanation
2. Each task: 15-90 minutes, using action verbs (Research, Build, Write, Review, etc.)
3. Be specific and practical
4. Respect the user's daily hour limit and work days
5. Tasks within a milestone should be in logical dependency order

Output format (strict JSON):
{
  "milestones": [
    {"title": "Milestone name", "targetDate": "YYYY-MM-DD", "order": 1}
  ],
  "tasks": [
    {
      "title": "Task description",
      "estimatedMinutes": 30,
      "scheduledDate": "YYYY-MM-DD",
      "scheduledStartTime": "HH:MM",
      "milestoneIndex": 0,
      "order": 1
    }
  ]
}"""

PERSONALIZATION_DIRECTIVES = (
    "IMPORTANT: Use the behavioral patterns above to personalize this plan:\n"
    "- Schedule tasks during their most productive times\n"
    "- Avoid scheduling during their challenging times\n"
    "- If they tend to take longer than estimated, pad durations accordingly\n"
    "- If they prefer shorter tasks, break work into smaller chunks"
)


@dataclass(frozen=True)
class PlanPrompt:
    system: str
    user: str
    deadline: str
    deadline_is_default: bool
    max_tasks_per_day: int


def compose_plan_prompt(
    goal: str,
    *,
    current_date: date,
    preferences: NormalizedPreferences,
    deadline: Optional[str] = None,
    behavioral_profile: Optional[str] = None,
    context: Optional[str] = None,
    default_deadline_days: int = DEFAULT_DEADLINE_DAYS,
) -> PlanPrompt:
    """Build the system/user instruction pair for one planning request.

    The output depends only on the arguments, so two calls with the same inputs
    always send the backend the same request.
    """
    goal_text = (goal or "").strip()
    if not goal_text:
        raise GoalValidationError("Goal is required and must be a non-empty string")

    deadline_text = (deadline or "").strip()
    deadline_is_default = not deadline_text
    if deadline_is_default:
        deadline_text = (current_date + timedelta(days=default_deadline_days)).isoformat()

    lines = [
        f'Goal: "{goal_text}"',
        f"Current date: {current_date.isoformat()}",
        f"Deadline: {deadline_text}" + (f" (default {default_deadline_days} days)" if deadline_is_default else ""),
        "",
        "User preferences:",
        f"- Available hours per day: {_format_hours(preferences.available_hours_per_day)}",
        f"- Preferred task duration: {preferences.preferred_task_duration_minutes} minutes",
        f"- Preferred time blocks: {', '.join(block.value for block in preferences.preferred_time_blocks)}",
        f"- Work days: {', '.join(day.value for day in preferences.work_days)}",
        f"- Preferred start time: {preferences.preferred_start_time}",
    ]
    user_prompt = "\n".join(lines)

    summary = behavioral_profile.strip() if isinstance(behavioral_profile, str) else ""
    if summary:
        user_prompt += f"\n\n{summary}\n\n{PERSONALIZATION_DIRECTIVES}"

    if context:
        user_prompt += f"\n\nAdditional context: {context}"

    max_tasks = preferences.max_tasks_per_day
    user_prompt += (
        "\n\nCreate milestones and schedule tasks across the available days.\n"
        f"Each day should have no more than {max_tasks} tasks.\n"
        "Return only the JSON object."
    )

    return PlanPrompt(
        system=SYSTEM_PROMPT,
        user=user_prompt,
        deadline=deadline_text,
        deadline_is_default=deadline_is_default,
        max_tasks_per_day=max_tasks,
    )


def _format_hours(hours: float) -> str:
    # 2.0 -> "2", 1.5 -> "1.5"
    return f"{hours:g}"
