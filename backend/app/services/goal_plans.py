"""Persist a normalized plan as a Goal with its Milestones and Tasks."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from app.db.models.goal import Goal
from app.db.models.milestone import Milestone
from app.db.models.task import Task
from app.services.plan_generator import GeneratedPlan
from app.services.user_service import get_or_create_user

logger = logging.getLogger(__name__)


class DeadlineBeforeCreationError(ValueError):
    """The goal deadline is not after its creation date."""


@dataclass
class StoredGoal:
    goal: Goal
    milestones: List[Milestone]
    tasks: List[Task]


def create_goal_from_plan(
    db: Session,
    *,
    user_id: UUID,
    title: str,
    deadline: Optional[date],
    plan: GeneratedPlan,
    created_at: Optional[datetime] = None,
) -> StoredGoal:
    """Write the goal, milestones and tasks of ``plan``; the caller commits.

    Milestones are stored in their normalized order (stable) and renumbered
    1..n. A task's ``milestone_index`` refers to the milestone at that position
    in the plan as returned by the backend; out of range means no milestone.
    """
    created = created_at or datetime.now(timezone.utc)
    if deadline is not None and deadline <= created.date():
        raise DeadlineBeforeCreationError("Deadline must be after the goal creation date")

    get_or_create_user(db, user_id)
    goal = Goal(
        user_id=user_id,
        title=title,
        deadline=deadline,
        completed=False,
        created_at=created,
        metadata_json={
            "plan_deadline": plan.deadline,
            "deadline_is_default": plan.deadline_is_default,
            "preferences": plan.preferences.to_payload(),
        },
    )
    db.add(goal)
    db.flush()

    by_plan_index: Dict[int, Milestone] = {}
    ranked = sorted(enumerate(plan.milestones), key=lambda pair: pair[1].order)
    milestones: List[Milestone] = []
    for position, (plan_index, planned) in enumerate(ranked, start=1):
        milestone = Milestone(
            goal_id=goal.id,
            title=planned.title,
            target_date=date.fromisoformat(planned.target_date),
            position=position,
            completed=False,
        )
        db.add(milestone)
        by_plan_index[plan_index] = milestone
        milestones.append(milestone)
    db.flush()

    tasks: List[Task] = []
    for planned in plan.tasks:
        scheduled_day = date.fromisoformat(planned.scheduled_date)
        start = time.fromisoformat(planned.scheduled_start_time)
        milestone = by_plan_index.get(planned.milestone_index)
        task = Task(
            user_id=user_id,
            goal_id=goal.id,
            milestone_id=milestone.id if milestone else None,
            title=planned.title,
            scheduled_day=scheduled_day,
            scheduled_time=start,
            ends_at=task_end(scheduled_day, start, planned.estimated_minutes),
            estimated_minutes=planned.estimated_minutes,
            goal_order=planned.order,
            ai_scheduled_day=scheduled_day,
            completed=False,
        )
        db.add(task)
        tasks.append(task)
    db.flush()

    logger.info(
        "Stored goal %s with %d milestones and %d tasks",
        goal.id,
        len(milestones),
        len(tasks),
    )
    return StoredGoal(goal=goal, milestones=milestones, tasks=tasks)


def task_end(day: date, start: Optional[time], minutes: Optional[int]) -> Optional[datetime]:
    if start is None:
        return None
    return datetime.combine(day, start) + timedelta(minutes=minutes or 0)


def load_goal(db: Session, goal_id: UUID) -> Optional[StoredGoal]:
    goal = db.get(Goal, goal_id)
    if goal is None:
        return None
    milestones = (
        db.query(Milestone)
        .filter(Milestone.goal_id == goal.id)
        .order_by(Milestone.position.asc())
        .all()
    )
    tasks = (
        db.query(Task)
        .filter(Task.goal_id == goal.id)
        .order_by(Task.goal_order.asc(), Task.scheduled_day.asc(), Task.scheduled_time.asc())
        .all()
    )
    return StoredGoal(goal=goal, milestones=milestones, tasks=tasks)
