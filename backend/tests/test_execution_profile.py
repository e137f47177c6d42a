"""Tests for observation aggregation and the derived execution profile."""
from __future__ import annotations

import math
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.services.execution_profile import (
    ObservationAggregator,
    ObservationKind,
    TaskObservation,
    compute_profile,
    duration_class,
)
from app.services.profile_summary import summarize_profile
from app.services.time_blocks import TimeBlock

# A Monday.
BASE = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)


def _obs(kind=ObservationKind.COMPLETED, *, at=BASE, minutes=15, actual=None, on_time=None):
    return TaskObservation.record(
        task_id=uuid4(),
        kind=kind,
        timestamp=at,
        estimated_minutes=minutes,
        actual_minutes=actual,
        on_time=on_time,
    )


def test_record_derives_local_context_from_timestamp() -> None:
    local = datetime(2026, 3, 1, 19, 30, tzinfo=timezone(timedelta(hours=-5)))
    observation = _obs(at=local)

    assert observation.day_of_week == 1  # Sunday
    assert observation.hour_of_day == 19
    assert observation.time_block is TimeBlock.EVENING


def test_decay_weight_halves_each_half_life() -> None:
    observation = _obs(at=BASE)

    assert observation.weight(BASE) == pytest.approx(1.0)
    assert observation.weight(BASE + timedelta(days=21)) == pytest.approx(0.5)
    assert observation.weight(BASE + timedelta(days=30)) == pytest.approx(math.exp(-math.log(2) * 30 / 21))
    assert observation.weight(BASE + timedelta(days=30)) < 0.4


def test_recent_outcomes_dominate_weighted_rate() -> None:
    old_skips = [_obs(ObservationKind.SKIPPED, at=BASE - timedelta(days=60)) for _ in range(3)]
    fresh_completions = [_obs(at=BASE) for _ in range(3)]

    profile = compute_profile(old_skips + fresh_completions)

    assert profile.overall_completion_rate == pytest.approx(0.5)
    assert profile.weighted_completion_rate > 0.8


def test_aggregator_recomputes_on_every_fifth_append() -> None:
    aggregator = ObservationAggregator()
    triggers = [aggregator.append(_obs(at=BASE + timedelta(hours=i))) for i in range(11)]

    assert [i + 1 for i, fired in enumerate(triggers) if fired] == [5, 10]
    assert aggregator.count == 11
    assert aggregator.profile.observation_count == 10


def test_rebuilt_aggregator_matches_incremental_replay() -> None:
    log = [_obs(at=BASE + timedelta(hours=i)) for i in range(7)]
    incremental = ObservationAggregator()
    for observation in log:
        incremental.append(observation)

    rebuilt = ObservationAggregator(log)

    assert rebuilt.profile == incremental.profile
    assert rebuilt.profile.observation_count == 5


def test_nine_observations_are_not_enough_to_personalize() -> None:
    aggregator = ObservationAggregator()
    for i in range(9):
        aggregator.append(_obs(at=BASE + timedelta(hours=i)))
    assert summarize_profile(aggregator.profile) is None

    aggregator.append(_obs(at=BASE + timedelta(hours=9)))
    summary = summarize_profile(aggregator.profile)

    assert summary
    assert summary.startswith("User behavioral patterns (last 10 observations):")


def test_sparse_duration_bucket_is_absent() -> None:
    log = [_obs(minutes=15) for _ in range(5)] + [_obs(minutes=60) for _ in range(2)]

    profile = compute_profile(log)

    assert profile.completion_rate_by_duration == {"short": 1.0}
    assert "long" not in profile.completion_rate_by_duration


def test_rankings_need_three_samples_per_group() -> None:
    morning = [_obs(at=BASE) for _ in range(3)]
    evening = [_obs(ObservationKind.SKIPPED, at=BASE.replace(hour=20)) for _ in range(2)]

    profile = compute_profile(morning + evening)

    assert profile.best_time_block is TimeBlock.MORNING
    assert profile.worst_time_block is TimeBlock.MORNING
    assert profile.stats_for_block(TimeBlock.EVENING).total_count == 2


def test_best_and_worst_blocks_and_days() -> None:
    tuesday = BASE + timedelta(days=1)
    log = (
        [_obs(at=BASE) for _ in range(3)]
        + [_obs(ObservationKind.SKIPPED, at=tuesday.replace(hour=14)) for _ in range(2)]
        + [_obs(at=tuesday.replace(hour=14))]
    )

    profile = compute_profile(log)

    assert profile.best_time_block is TimeBlock.MORNING
    assert profile.worst_time_block is TimeBlock.AFTERNOON
    assert profile.most_productive_day == 2
    assert profile.least_productive_day == 3


def test_duration_ratio_and_on_time_rate() -> None:
    log = [
        _obs(minutes=30, actual=45, on_time=True),
        _obs(minutes=30, actual=45, on_time=False),
        _obs(ObservationKind.RESCHEDULED, minutes=30),
        _obs(ObservationKind.EDITED, minutes=30),
    ]

    profile = compute_profile(log)

    assert profile.average_duration_ratio == pytest.approx(1.5)
    assert profile.on_time_completion_rate == pytest.approx(0.5)
    assert profile.reschedule_rate == pytest.approx(0.25)
    assert profile.edit_rate == pytest.approx(0.25)
    assert profile.preferred_task_duration == 30


def test_empty_log_gives_neutral_profile() -> None:
    profile = compute_profile([])

    assert profile.observation_count == 0
    assert profile.average_duration_ratio == 1.0
    assert profile.best_time_block is None
    assert profile.on_time_completion_rate is None


@pytest.mark.parametrize("minutes, expected", [(10, "short"), (19, "short"), (20, "medium"), (45, "medium"), (46, "long")])
def test_duration_classes(minutes, expected) -> None:
    assert duration_class(minutes) == expected
