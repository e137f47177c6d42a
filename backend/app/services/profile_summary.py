"""Render an execution profile as the behavioral snippet fed to the prompt composer."""
from __future__ import annotations

from typing import List, Optional

from app.services.execution_profile import ExecutionProfile
from app.services.time_blocks import day_name

PERSONALIZATION_THRESHOLD = 10
DURATION_DRIFT_PERCENT = 10
SHORT_TASK_ADVANTAGE = 0.2
LATE_COMPLETION_RATE = 0.6


def summarize_profile(profile: ExecutionProfile, *, threshold: int = PERSONALIZATION_THRESHOLD) -> Optional[str]:
    """Return plain-sentence lines describing ``profile``, or ``None`` when data is too sparse."""
    if profile.observation_count < threshold:
        return None

    lines: List[str] = [f"User behavioral patterns (last {profile.observation_count} observations):"]
    lines.append(
        f"- Overall completion rate: {_percent(profile.overall_completion_rate)}% "
        f"(recent-weighted: {_percent(profile.weighted_completion_rate)}%)"
    )

    drift = _percent(profile.average_duration_ratio - 1.0)
    if drift > DURATION_DRIFT_PERCENT:
        lines.append(f"- Tasks typically take {drift}% longer than estimated")
    elif drift < -DURATION_DRIFT_PERCENT:
        lines.append(f"- Tasks typically take {abs(drift)}% less time than estimated")

    best = profile.best_time_block
    best_stats = profile.stats_for_block(best) if best else None
    if best_stats:
        lines.append(
            f"- Best time: {best.display_name} ({_percent(best_stats.weighted_completion_rate)}% completion)"
        )
    worst = profile.worst_time_block
    worst_stats = profile.stats_for_block(worst) if worst and worst != best else None
    if worst_stats:
        lines.append(
            f"- Challenging time: {worst.display_name} ({_percent(worst_stats.weighted_completion_rate)}% completion)"
        )

    if profile.most_productive_day:
        lines.append(f"- Most productive day: {day_name(profile.most_productive_day)}")
    if profile.least_productive_day and profile.least_productive_day != profile.most_productive_day:
        lines.append(f"- Least productive day: {day_name(profile.least_productive_day)}")

    short_rate = profile.completion_rate_by_duration.get("short")
    long_rate = profile.completion_rate_by_duration.get("long")
    if short_rate is not None and long_rate is not None and short_rate > long_rate + SHORT_TASK_ADVANTAGE:
        lines.append("- Prefers shorter tasks (higher completion rate for tasks under 20 minutes)")

    on_time = profile.on_time_completion_rate
    if on_time is not None and on_time < LATE_COMPLETION_RATE:
        lines.append(f"- Often completes tasks later than scheduled ({_percent(on_time)}% on-time)")

    return "\n".join(lines)


def _percent(rate: float) -> int:
    return int(round(rate * 100))
