"""Persistence for the per-user observation log and its derived profile."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models.task_observation import TaskObservationRecord
from app.observability.metrics import log_metric
from app.services.execution_profile import (
    ExecutionProfile,
    ObservationAggregator,
    ObservationKind,
    TaskObservation,
)
from app.services.profile_summary import summarize_profile
from app.services.time_blocks import TimeBlock
from app.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)


class ObservationConflictError(Exception):
    """Another writer appended an observation for the same user concurrently."""


@dataclass(frozen=True)
class RecordedObservation:
    observation: TaskObservation
    sequence: int
    recomputed: bool
    profile: ExecutionProfile
    observation_count: int


def build_aggregator(log: List[TaskObservation]) -> ObservationAggregator:
    return ObservationAggregator(
        log,
        recompute_interval=settings.profile_recompute_interval,
        half_life_days=settings.profile_half_life_days,
        min_group_samples=settings.profile_min_group_samples,
    )


def append_observation(db: Session, user_id: UUID, observation: TaskObservation, sequence: int) -> TaskObservationRecord:
    """Insert one observation at ``sequence``.

    Raises ``ObservationConflictError`` when that sequence number is already
    taken; the session is rolled back in that case.
    """
    offset = observation.timestamp.utcoffset() or timedelta(0)
    record = TaskObservationRecord(
        id=observation.id,
        user_id=user_id,
        sequence=sequence,
        task_id=observation.task_id,
        goal_id=observation.goal_id,
        kind=observation.kind.value,
        observed_at=observation.timestamp,
        utc_offset_minutes=int(offset.total_seconds() // 60),
        day_of_week=observation.day_of_week,
        hour_of_day=observation.hour_of_day,
        time_block=observation.time_block.value if observation.time_block else None,
        estimated_minutes=observation.estimated_minutes,
        actual_minutes=observation.actual_minutes,
        on_time=observation.on_time,
        previous_title=observation.previous_title,
        new_title=observation.new_title,
        previous_minutes=observation.previous_minutes,
        new_minutes=observation.new_minutes,
        previous_date=observation.previous_date,
        new_date=observation.new_date,
    )
    db.add(record)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise ObservationConflictError(
            f"Observation sequence {sequence} already recorded for user {user_id}"
        ) from exc
    return record


def load_observation_log(db: Session, user_id: UUID) -> List[TaskObservation]:
    """Return the user's full log in append order."""
    records = (
        db.query(TaskObservationRecord)
        .filter(TaskObservationRecord.user_id == user_id)
        .order_by(TaskObservationRecord.sequence.asc())
        .all()
    )
    return [to_observation(record) for record in records]


def record_observation(db: Session, user_id: UUID, observation: TaskObservation) -> RecordedObservation:
    """Append ``observation`` through an aggregator rebuilt from the stored log.

    The caller commits. A recompute happens synchronously when the append lands
    on a multiple of the recompute interval.
    """
    get_or_create_user(db, user_id)
    aggregator = build_aggregator(load_observation_log(db, user_id))
    recomputed = aggregator.append(observation)
    append_observation(db, user_id, observation, sequence=aggregator.count)

    if recomputed:
        logger.info(
            "Recomputed execution profile for user %s over %d observations",
            user_id,
            aggregator.count,
        )
        log_metric("profile.recompute", 1, metadata={"observation_count": aggregator.count})
    log_metric("observation.recorded", 1, metadata={"kind": observation.kind.value})

    return RecordedObservation(
        observation=observation,
        sequence=aggregator.count,
        recomputed=recomputed,
        profile=aggregator.profile,
        observation_count=aggregator.count,
    )


def current_profile(db: Session, user_id: UUID) -> ExecutionProfile:
    return build_aggregator(load_observation_log(db, user_id)).profile


def current_profile_summary(db: Session, user_id: UUID) -> Optional[str]:
    return summarize_profile(
        current_profile(db, user_id),
        threshold=settings.profile_personalization_threshold,
    )


def to_observation(record: TaskObservationRecord) -> TaskObservation:
    # Restore the offset the observation was made in so local day/hour stay meaningful.
    local_zone = timezone(timedelta(minutes=record.utc_offset_minutes or 0))
    return TaskObservation(
        id=record.id,
        task_id=record.task_id,
        goal_id=record.goal_id,
        kind=ObservationKind(record.kind),
        timestamp=record.observed_at.astimezone(local_zone),
        day_of_week=record.day_of_week,
        hour_of_day=record.hour_of_day,
        time_block=TimeBlock(record.time_block) if record.time_block else None,
        estimated_minutes=record.estimated_minutes,
        actual_minutes=record.actual_minutes,
        on_time=record.on_time,
        previous_title=record.previous_title,
        new_title=record.new_title,
        previous_minutes=record.previous_minutes,
        new_minutes=record.new_minutes,
        previous_date=record.previous_date,
        new_date=record.new_date,
    )
