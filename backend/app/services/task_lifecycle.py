"""Task lifecycle changes, each feeding one observation into the user's log."""
from __future__ import annotations

import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional

from sqlalchemy.orm import Session

from app.db.models.goal import Goal
from app.db.models.milestone import Milestone
from app.db.models.task import Task
from app.services.execution_profile import ObservationKind, TaskObservation
from app.services.goal_plans import task_end
from app.services.observation_store import RecordedObservation, record_observation
from app.services.plan_normalizer import clamp_minutes

logger = logging.getLogger(__name__)


class TaskAlreadyCompletedError(ValueError):
    """The task already has an outcome; another one would be counted twice."""


def complete_task(
    db: Session,
    task: Task,
    *,
    actual_minutes: Optional[int] = None,
    at: Optional[datetime] = None,
    utc_offset_minutes: Optional[int] = None,
) -> RecordedObservation:
    """Mark ``task`` done and roll completion up to its milestone and goal.

    The task counts as on time when it is completed on its scheduled local day.
    The local day comes from ``at`` when it carries an offset, else from
    ``utc_offset_minutes``, else UTC.

    Raises ``TaskAlreadyCompletedError`` for a task that is already done.
    """
    _ensure_open(task)
    moment = _moment(at, utc_offset_minutes)
    task.completed = True
    task.completed_at = moment
    db.add(task)
    db.flush()

    if task.milestone_id:
        _complete_milestone_if_done(db, task.milestone_id, moment)
    if task.goal_id:
        _complete_goal_if_done(db, task.goal_id, moment)

    observation = TaskObservation.record(
        task_id=task.id,
        goal_id=task.goal_id,
        kind=ObservationKind.COMPLETED,
        timestamp=moment,
        estimated_minutes=task.estimated_minutes,
        actual_minutes=actual_minutes,
        on_time=moment.date() == task.scheduled_day if task.scheduled_day else None,
    )
    return record_observation(db, task.user_id, observation)


def skip_task(
    db: Session,
    task: Task,
    *,
    at: Optional[datetime] = None,
    utc_offset_minutes: Optional[int] = None,
) -> RecordedObservation:
    _ensure_open(task)
    observation = TaskObservation.record(
        task_id=task.id,
        goal_id=task.goal_id,
        kind=ObservationKind.SKIPPED,
        timestamp=_moment(at, utc_offset_minutes),
        estimated_minutes=task.estimated_minutes,
    )
    return record_observation(db, task.user_id, observation)


def reschedule_task(
    db: Session,
    task: Task,
    *,
    scheduled_date: date,
    start_time: Optional[time] = None,
    at: Optional[datetime] = None,
    utc_offset_minutes: Optional[int] = None,
) -> RecordedObservation:
    """Move ``task`` to ``scheduled_date``; the end time keeps the task duration."""
    previous_date = task.scheduled_day
    task.scheduled_day = scheduled_date
    if start_time is not None:
        task.scheduled_time = start_time
    task.ends_at = task_end(scheduled_date, task.scheduled_time, task.estimated_minutes)
    db.add(task)
    db.flush()

    observation = TaskObservation.record(
        task_id=task.id,
        goal_id=task.goal_id,
        kind=ObservationKind.RESCHEDULED,
        timestamp=_moment(at, utc_offset_minutes),
        estimated_minutes=task.estimated_minutes,
        previous_date=previous_date,
        new_date=scheduled_date,
    )
    return record_observation(db, task.user_id, observation)


def edit_task(
    db: Session,
    task: Task,
    *,
    title: Optional[str] = None,
    estimated_minutes: Optional[int] = None,
    at: Optional[datetime] = None,
    utc_offset_minutes: Optional[int] = None,
) -> RecordedObservation:
    previous_title = task.title
    previous_minutes = task.estimated_minutes
    if title is not None and title.strip():
        task.title = title.strip()
    if estimated_minutes is not None:
        task.estimated_minutes = clamp_minutes(estimated_minutes)
        task.ends_at = task_end(task.scheduled_day, task.scheduled_time, task.estimated_minutes)
    db.add(task)
    db.flush()

    observation = TaskObservation.record(
        task_id=task.id,
        goal_id=task.goal_id,
        kind=ObservationKind.EDITED,
        timestamp=_moment(at, utc_offset_minutes),
        estimated_minutes=task.estimated_minutes,
        previous_title=previous_title,
        new_title=task.title,
        previous_minutes=previous_minutes,
        new_minutes=task.estimated_minutes,
    )
    return record_observation(db, task.user_id, observation)


def _ensure_open(task: Task) -> None:
    if task.completed:
        raise TaskAlreadyCompletedError(f"Task {task.id} is already completed")


def _moment(at: Optional[datetime], utc_offset_minutes: Optional[int] = None) -> datetime:
    zone = timezone(timedelta(minutes=utc_offset_minutes)) if utc_offset_minutes is not None else timezone.utc
    if at is None:
        return datetime.now(zone)
    if at.tzinfo is None:
        return at.replace(tzinfo=zone)
    return at


def _complete_milestone_if_done(db: Session, milestone_id, moment: datetime) -> None:
    milestone = db.get(Milestone, milestone_id)
    if milestone is None or milestone.completed:
        return
    open_tasks = (
        db.query(Task)
        .filter(Task.milestone_id == milestone_id, Task.completed.is_(False))
        .count()
    )
    if open_tasks == 0:
        milestone.completed = True
        milestone.completed_at = moment
        db.add(milestone)
        logger.info("Milestone %s completed", milestone_id)


def _complete_goal_if_done(db: Session, goal_id, moment: datetime) -> None:
    goal = db.get(Goal, goal_id)
    if goal is None or goal.completed:
        return
    open_tasks = db.query(Task).filter(Task.goal_id == goal_id, Task.completed.is_(False)).count()
    if open_tasks == 0:
        goal.completed = True
        goal.completed_at = moment
        db.add(goal)
        logger.info("Goal %s completed", goal_id)
