"""Task listing and lifecycle API routes."""
from __future__ import annotations

from datetime import date
from time import perf_counter
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import asc, nulls_last
from sqlalchemy.orm import Session

from app.api.schemas.task import (
    TaskCompleteRequest,
    TaskEditRequest,
    TaskLifecycleResponse,
    TaskRescheduleRequest,
    TaskSkipRequest,
    TaskSummary,
)
from app.db.deps import get_db
from app.db.models.task import Task
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services import task_lifecycle
from app.services.observation_store import ObservationConflictError, RecordedObservation
from app.services.task_lifecycle import TaskAlreadyCompletedError

router = APIRouter()


@router.get("/tasks", response_model=List[TaskSummary], tags=["tasks"])
def list_tasks(
    http_request: Request,
    user_id: UUID = Query(..., description="User ID owning the tasks"),
    goal_id: Optional[UUID] = Query(default=None),
    status_filter: str = Query("all", alias="status", pattern="^(open|completed|all)$"),
    from_: Optional[date] = Query(default=None, alias="from"),
    to: Optional[date] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[TaskSummary]:
    """List a user's tasks ordered by schedule, optionally filtered."""
    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": "/tasks",
        "goal_id": str(goal_id) if goal_id else None,
        "status": status_filter,
        "from": from_.isoformat() if from_ else None,
        "to": to.isoformat() if to else None,
    }

    with trace("task.list", metadata=metadata, user_id=str(user_id), request_id=request_id):
        query = db.query(Task).filter(Task.user_id == user_id)
        if goal_id:
            query = query.filter(Task.goal_id == goal_id)
        if status_filter == "open":
            query = query.filter(Task.completed.is_(False))
        elif status_filter == "completed":
            query = query.filter(Task.completed.is_(True))
        if from_:
            query = query.filter(Task.scheduled_day >= from_)
        if to:
            query = query.filter(Task.scheduled_day <= to)

        tasks = query.order_by(
            asc(Task.scheduled_day),
            nulls_last(asc(Task.scheduled_time)),
            asc(Task.created_at),
        ).all()

    log_metric("task.list.count", len(tasks), metadata={"status": status_filter})
    return [serialize_task(task) for task in tasks]


@router.post("/tasks/{task_id}/complete", response_model=TaskLifecycleResponse, tags=["tasks"])
def complete_task(
    task_id: UUID,
    payload: TaskCompleteRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskLifecycleResponse:
    """Complete a task; its milestone and goal complete with their last task."""
    return _apply(
        "task.complete",
        task_id,
        payload.user_id,
        http_request,
        db,
        lambda task: task_lifecycle.complete_task(
            db,
            task,
            actual_minutes=payload.actual_minutes,
            at=payload.completed_at,
            utc_offset_minutes=payload.utc_offset_minutes,
        ),
    )


@router.post("/tasks/{task_id}/skip", response_model=TaskLifecycleResponse, tags=["tasks"])
def skip_task(
    task_id: UUID,
    payload: TaskSkipRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskLifecycleResponse:
    return _apply(
        "task.skip",
        task_id,
        payload.user_id,
        http_request,
        db,
        lambda task: task_lifecycle.skip_task(
            db,
            task,
            at=payload.skipped_at,
            utc_offset_minutes=payload.utc_offset_minutes,
        ),
    )


@router.post("/tasks/{task_id}/reschedule", response_model=TaskLifecycleResponse, tags=["tasks"])
def reschedule_task(
    task_id: UUID,
    payload: TaskRescheduleRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskLifecycleResponse:
    """Move a task to another day, keeping its duration."""
    return _apply(
        "task.reschedule",
        task_id,
        payload.user_id,
        http_request,
        db,
        lambda task: task_lifecycle.reschedule_task(
            db,
            task,
            scheduled_date=payload.scheduled_date,
            start_time=payload.start_time,
            at=payload.requested_at,
            utc_offset_minutes=payload.utc_offset_minutes,
        ),
    )


@router.patch("/tasks/{task_id}", response_model=TaskLifecycleResponse, tags=["tasks"])
def edit_task(
    task_id: UUID,
    payload: TaskEditRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> TaskLifecycleResponse:
    return _apply(
        "task.edit",
        task_id,
        payload.user_id,
        http_request,
        db,
        lambda task: task_lifecycle.edit_task(
            db,
            task,
            title=payload.title,
            estimated_minutes=payload.estimated_minutes,
            at=payload.edited_at,
            utc_offset_minutes=payload.utc_offset_minutes,
        ),
    )


def _apply(
    action: str,
    task_id: UUID,
    user_id: UUID,
    http_request: Request,
    db: Session,
    change: Callable[[Task], RecordedObservation],
) -> TaskLifecycleResponse:
    task = db.get(Task, task_id)
    if not task:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Task not found")
    if task.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Task does not belong to user")

    request_id = getattr(http_request.state, "request_id", None)
    metadata: Dict[str, Any] = {
        "route": f"/tasks/{task_id}",
        "task_id": str(task_id),
        "goal_id": str(task.goal_id) if task.goal_id else None,
    }

    started = perf_counter()
    try:
        with trace(action, metadata=metadata, user_id=str(user_id), request_id=request_id):
            recorded = change(task)
            db.commit()
    except TaskAlreadyCompletedError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except ObservationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise
    db.refresh(task)

    latency_ms = (perf_counter() - started) * 1000
    log_metric(f"{action}.success", 1, metadata={"task_id": str(task_id)})
    log_metric(f"{action}.latency_ms", latency_ms, metadata={"task_id": str(task_id)})

    return TaskLifecycleResponse(
        task=serialize_task(task),
        observation_sequence=recorded.sequence,
        profile_recomputed=recorded.recomputed,
        request_id=request_id or "",
    )


def serialize_task(task: Task) -> TaskSummary:
    return TaskSummary(
        id=task.id,
        goal_id=task.goal_id,
        milestone_id=task.milestone_id,
        title=task.title,
        scheduled_day=task.scheduled_day,
        scheduled_time=task.scheduled_time,
        ends_at=task.ends_at,
        estimated_minutes=task.estimated_minutes,
        order=task.goal_order,
        ai_scheduled_day=task.ai_scheduled_day,
        completed=bool(task.completed),
        completed_at=task.completed_at,
    )
