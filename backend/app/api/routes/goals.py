"""Persisted goal routes: plan, store and read back."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.routes.task import serialize_task
from app.api.schemas.goal import GoalCreateRequest, GoalCreateResponse, GoalDetail, MilestoneSummary
from app.core.errors import BackendAuthError, BackendRateLimitError, PlanningError
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.goal_plans import DeadlineBeforeCreationError, StoredGoal, create_goal_from_plan, load_goal
from app.services.observation_store import current_profile_summary
from app.services.plan_generator import PlanRequest, generate_plan
from app.services.planning_backend import PlanningBackend, get_planning_backend
from app.services.user_service import load_preferences


router = APIRouter()


@router.post(
    "/users/{user_id}/goals",
    response_model=GoalCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["goals"],
)
def create_goal(
    user_id: UUID,
    payload: GoalCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
    backend: PlanningBackend = Depends(get_planning_backend),
) -> GoalCreateResponse:
    """Plan a goal with the user's preferences and behavior, then store it."""
    request_id = getattr(http_request.state, "request_id", None)
    created_at = datetime.now(timezone.utc)
    if payload.deadline is not None and payload.deadline <= created_at.date():
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Deadline must be after the goal creation date",
        )

    preferences = load_preferences(db, user_id)
    summary = current_profile_summary(db, user_id)
    metadata: Dict[str, Any] = {
        "route": "/users/{user_id}/goals",
        "has_deadline": payload.deadline is not None,
        "personalized": summary is not None,
    }

    try:
        with trace("goal.create", metadata=metadata, user_id=str(user_id), request_id=request_id):
            plan = generate_plan(
                PlanRequest(
                    goal=payload.title,
                    deadline=payload.deadline.isoformat() if payload.deadline else None,
                    current_date=created_at.date().isoformat(),
                    preferences=preferences.to_payload(),
                    behavioral_profile=summary,
                    context=payload.context,
                ),
                backend,
                request_id=request_id,
            )
            stored = create_goal_from_plan(
                db,
                user_id=user_id,
                title=plan.goal,
                deadline=payload.deadline,
                plan=plan,
                created_at=created_at,
            )
            db.commit()
    except DeadlineBeforeCreationError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    except BackendRateLimitError as exc:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Rate limit exceeded") from exc
    except BackendAuthError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error",
        ) from exc
    except PlanningError as exc:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to generate plan",
        ) from exc
    except Exception:
        db.rollback()
        raise

    log_metric(
        "goal.create.success",
        1,
        metadata={"milestones": len(stored.milestones), "tasks": len(stored.tasks)},
    )
    return GoalCreateResponse(
        goal=_serialize_goal(stored),
        deadline_is_default=plan.deadline_is_default,
        personalized=summary is not None,
        request_id=request_id or "",
    )


@router.get("/goals/{goal_id}", response_model=GoalDetail, tags=["goals"])
def get_goal(
    goal_id: UUID,
    http_request: Request,
    db: Session = Depends(get_db),
) -> GoalDetail:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("goal.get", metadata={"goal_id": str(goal_id)}, request_id=request_id):
        stored = load_goal(db, goal_id)
    if stored is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Goal not found")
    return _serialize_goal(stored)


def _serialize_goal(stored: StoredGoal) -> GoalDetail:
    goal = stored.goal
    return GoalDetail(
        id=goal.id,
        user_id=goal.user_id,
        title=goal.title,
        deadline=goal.deadline,
        completed=bool(goal.completed),
        completed_at=goal.completed_at,
        created_at=goal.created_at,
        milestones=[
            MilestoneSummary(
                id=milestone.id,
                title=milestone.title,
                target_date=milestone.target_date,
                order=milestone.position,
                completed=bool(milestone.completed),
                completed_at=milestone.completed_at,
            )
            for milestone in stored.milestones
        ],
        tasks=[serialize_task(task) for task in stored.tasks],
    )
