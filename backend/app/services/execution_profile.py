"""Behavioral observations and the execution profile derived from them.

The profile is never edited in place. ``compute_profile`` is a pure function of
an observation list, and ``ObservationAggregator`` only decides *when* to call
it: after every ``recompute_interval``-th append.
"""
from __future__ import annotations

import math
from collections import Counter
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID, uuid4

from app.services.time_blocks import TimeBlock, block_for_hour, day_of_week

DEFAULT_RECOMPUTE_INTERVAL = 5
DEFAULT_HALF_LIFE_DAYS = 21.0
MIN_GROUP_SAMPLES = 3
SHORT_TASK_LIMIT = 20
LONG_TASK_LIMIT = 45
DURATION_CLASSES = ("short", "medium", "long")


class ObservationKind(str, Enum):
    COMPLETED = "completed"
    RESCHEDULED = "rescheduled"
    EDITED = "edited"
    SKIPPED = "skipped"


OUTCOME_KINDS = (ObservationKind.COMPLETED, ObservationKind.SKIPPED)


@dataclass(frozen=True)
class TaskObservation:
    """Immutable record of one thing that happened to a task."""

    task_id: UUID
    kind: ObservationKind
    timestamp: datetime
    day_of_week: int
    hour_of_day: int
    time_block: Optional[TimeBlock]
    id: UUID = field(default_factory=uuid4)
    goal_id: Optional[UUID] = None
    estimated_minutes: Optional[int] = None
    actual_minutes: Optional[int] = None
    on_time: Optional[bool] = None
    previous_title: Optional[str] = None
    new_title: Optional[str] = None
    previous_minutes: Optional[int] = None
    new_minutes: Optional[int] = None
    previous_date: Optional[date] = None
    new_date: Optional[date] = None

    @classmethod
    def record(
        cls,
        *,
        task_id: UUID,
        kind: ObservationKind,
        timestamp: Optional[datetime] = None,
        **details: Any,
    ) -> "TaskObservation":
        """Create an observation, deriving day/hour/time block from ``timestamp``.

        The timestamp keeps the caller's UTC offset so the derived context is the
        user's local day and hour.
        """
        moment = timestamp or datetime.now(timezone.utc)
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        return cls(
            task_id=task_id,
            kind=ObservationKind(kind),
            timestamp=moment,
            day_of_week=day_of_week(moment),
            hour_of_day=moment.hour,
            time_block=block_for_hour(moment.hour),
            **details,
        )

    def weight(self, as_of: datetime, half_life_days: float = DEFAULT_HALF_LIFE_DAYS) -> float:
        """Exponential decay weight: 1.0 when fresh, 0.5 after ``half_life_days``."""
        age_days = max((as_of - self.timestamp).total_seconds() / 86400, 0.0)
        return math.exp(-math.log(2) * age_days / half_life_days)

    @property
    def is_outcome(self) -> bool:
        return self.kind in OUTCOME_KINDS


@dataclass(frozen=True)
class GroupStats:
    key: Any
    completion_count: int
    total_count: int
    completion_rate: float
    weighted_completion_rate: float


@dataclass(frozen=True)
class ExecutionProfile:
    overall_completion_rate: float = 0.0
    weighted_completion_rate: float = 0.0
    average_duration_ratio: float = 1.0
    time_block_stats: List[GroupStats] = field(default_factory=list)
    best_time_block: Optional[TimeBlock] = None
    worst_time_block: Optional[TimeBlock] = None
    day_stats: List[GroupStats] = field(default_factory=list)
    most_productive_day: Optional[int] = None
    least_productive_day: Optional[int] = None
    completion_rate_by_duration: Dict[str, float] = field(default_factory=dict)
    preferred_task_duration: Optional[int] = None
    average_completed_task_duration: Optional[int] = None
    reschedule_rate: float = 0.0
    edit_rate: float = 0.0
    skip_rate: float = 0.0
    on_time_completion_rate: Optional[float] = None
    observation_count: int = 0
    completion_count: int = 0
    first_observed_at: Optional[datetime] = None
    last_observed_at: Optional[datetime] = None

    def stats_for_block(self, block: TimeBlock) -> Optional[GroupStats]:
        return next((stats for stats in self.time_block_stats if stats.key == block), None)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def duration_class(minutes: int) -> str:
    if minutes < SHORT_TASK_LIMIT:
        return "short"
    if minutes <= LONG_TASK_LIMIT:
        return "medium"
    return "long"


def compute_profile(
    observations: Iterable[TaskObservation],
    *,
    as_of: Optional[datetime] = None,
    half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
    min_group_samples: int = MIN_GROUP_SAMPLES,
) -> ExecutionProfile:
    """Full recompute of the profile over ``observations``.

    Ages are measured from ``as_of``, which defaults to the newest observation so
    the result depends on the log alone.
    """
    log = list(observations)
    if not log:
        return ExecutionProfile()

    reference = as_of or max(obs.timestamp for obs in log)

    def weigh(obs: TaskObservation) -> float:
        return obs.weight(reference, half_life_days)

    completions = [obs for obs in log if obs.kind is ObservationKind.COMPLETED]
    outcomes = [obs for obs in log if obs.is_outcome]
    kind_counts = Counter(obs.kind for obs in log)

    task_ids = {obs.task_id for obs in log}
    completed_ids = {obs.task_id for obs in completions}
    total_tasks = len(task_ids)

    time_block_stats = _group_stats(outcomes, lambda obs: obs.time_block, list(TimeBlock), weigh)
    day_stats = _group_stats(outcomes, lambda obs: obs.day_of_week, list(range(1, 8)), weigh)
    best_block, worst_block = _rank(time_block_stats, min_group_samples)
    best_day, worst_day = _rank(day_stats, min_group_samples)

    timed = [obs for obs in completions if obs.on_time is not None]
    completed_durations = [obs.estimated_minutes for obs in completions if obs.estimated_minutes]

    return ExecutionProfile(
        overall_completion_rate=_ratio(len(completed_ids), total_tasks),
        weighted_completion_rate=_weighted_rate(outcomes, weigh),
        average_duration_ratio=_duration_ratio(completions, weigh),
        time_block_stats=time_block_stats,
        best_time_block=best_block,
        worst_time_block=worst_block,
        day_stats=day_stats,
        most_productive_day=best_day,
        least_productive_day=worst_day,
        completion_rate_by_duration=_completion_by_duration(outcomes, min_group_samples),
        preferred_task_duration=_mode(completed_durations),
        average_completed_task_duration=(
            sum(completed_durations) // len(completed_durations) if completed_durations else None
        ),
        reschedule_rate=_ratio(kind_counts[ObservationKind.RESCHEDULED], total_tasks),
        edit_rate=_ratio(kind_counts[ObservationKind.EDITED], total_tasks),
        skip_rate=_ratio(kind_counts[ObservationKind.SKIPPED], total_tasks),
        on_time_completion_rate=(
            _ratio(sum(1 for obs in timed if obs.on_time), len(timed)) if timed else None
        ),
        observation_count=len(log),
        completion_count=len(completions),
        first_observed_at=min(obs.timestamp for obs in log),
        last_observed_at=max(obs.timestamp for obs in log),
    )


class ObservationAggregator:
    """Append-only observation log with a periodically recomputed profile.

    One aggregator per user; appends must be serialized by the caller. Building
    an aggregator from a stored log gives the same snapshot as replaying the
    appends one by one.
    """

    def __init__(
        self,
        observations: Iterable[TaskObservation] = (),
        *,
        recompute_interval: int = DEFAULT_RECOMPUTE_INTERVAL,
        half_life_days: float = DEFAULT_HALF_LIFE_DAYS,
        min_group_samples: int = MIN_GROUP_SAMPLES,
    ) -> None:
        if recompute_interval < 1:
            raise ValueError("recompute_interval must be positive")
        self.recompute_interval = recompute_interval
        self.half_life_days = half_life_days
        self.min_group_samples = min_group_samples
        self._log: List[TaskObservation] = list(observations)
        window = len(self._log) - len(self._log) % recompute_interval
        self._profile = self._compute(self._log[:window])

    @property
    def count(self) -> int:
        return len(self._log)

    @property
    def log(self) -> Tuple[TaskObservation, ...]:
        return tuple(self._log)

    @property
    def profile(self) -> ExecutionProfile:
        return self._profile

    def append(self, observation: TaskObservation) -> bool:
        """Add ``observation``; return True when this append triggered a recompute."""
        self._log.append(observation)
        if self.count % self.recompute_interval != 0:
            return False
        self._profile = self._compute(self._log)
        return True

    def _compute(self, observations: Sequence[TaskObservation]) -> ExecutionProfile:
        return compute_profile(
            observations,
            half_life_days=self.half_life_days,
            min_group_samples=self.min_group_samples,
        )


def _ratio(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def _weighted_rate(outcomes: Sequence[TaskObservation], weigh: Callable[[TaskObservation], float]) -> float:
    total = 0.0
    completed = 0.0
    for obs in outcomes:
        weight = weigh(obs)
        total += weight
        if obs.kind is ObservationKind.COMPLETED:
            completed += weight
    return _ratio(completed, total)


def _duration_ratio(completions: Sequence[TaskObservation], weigh: Callable[[TaskObservation], float]) -> float:
    total_weight = 0.0
    weighted_ratio = 0.0
    for obs in completions:
        if not obs.estimated_minutes or not obs.actual_minutes:
            continue
        if obs.estimated_minutes <= 0 or obs.actual_minutes <= 0:
            continue
        weight = weigh(obs)
        weighted_ratio += weight * obs.actual_minutes / obs.estimated_minutes
        total_weight += weight
    return weighted_ratio / total_weight if total_weight else 1.0


def _group_stats(
    outcomes: Sequence[TaskObservation],
    key_of: Callable[[TaskObservation], Hashable],
    keys: Sequence[Hashable],
    weigh: Callable[[TaskObservation], float],
) -> List[GroupStats]:
    stats: List[GroupStats] = []
    for key in keys:
        members = [obs for obs in outcomes if key_of(obs) == key]
        if not members:
            continue
        completed = sum(1 for obs in members if obs.kind is ObservationKind.COMPLETED)
        stats.append(
            GroupStats(
                key=key,
                completion_count=completed,
                total_count=len(members),
                completion_rate=completed / len(members),
                weighted_completion_rate=_weighted_rate(members, weigh),
            )
        )
    return stats


def _rank(stats: Sequence[GroupStats], min_samples: int) -> Tuple[Optional[Any], Optional[Any]]:
    eligible = [entry for entry in stats if entry.total_count >= min_samples]
    if not eligible:
        return None, None
    best = max(eligible, key=lambda entry: entry.weighted_completion_rate)
    worst = min(eligible, key=lambda entry: entry.weighted_completion_rate)
    return best.key, worst.key


def _completion_by_duration(outcomes: Sequence[TaskObservation], min_samples: int) -> Dict[str, float]:
    buckets: Dict[str, List[TaskObservation]] = {name: [] for name in DURATION_CLASSES}
    for obs in outcomes:
        if obs.estimated_minutes:
            buckets[duration_class(obs.estimated_minutes)].append(obs)
    return {
        name: sum(1 for obs in members if obs.kind is ObservationKind.COMPLETED) / len(members)
        for name, members in buckets.items()
        if len(members) >= min_samples
    }


def _mode(values: Sequence[int]) -> Optional[int]:
    if not values:
        return None
    counts = Counter(values)
    top = max(counts.values())
    return min(value for value, count in counts.items() if count == top)
