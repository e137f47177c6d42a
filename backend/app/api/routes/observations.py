"""Observation log and execution profile routes."""
from __future__ import annotations

from typing import Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.schemas.observation import (
    ExecutionProfileSchema,
    ObservationCreateRequest,
    ObservationCreateResponse,
    ObservationListResponse,
    ObservationSummary,
    ProfileResponse,
)
from app.core.config import settings
from app.db.deps import get_db
from app.observability.tracing import trace
from app.services.execution_profile import TaskObservation
from app.services.observation_store import (
    ObservationConflictError,
    build_aggregator,
    load_observation_log,
    record_observation,
)
from app.services.profile_summary import summarize_profile


router = APIRouter()


@router.post(
    "/users/{user_id}/observations",
    response_model=ObservationCreateResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["observations"],
)
def create_observation(
    user_id: UUID,
    payload: ObservationCreateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ObservationCreateResponse:
    """Append a client-reported lifecycle event to the user's log."""
    request_id = getattr(http_request.state, "request_id", None)
    observation = TaskObservation.record(
        task_id=payload.task_id,
        goal_id=payload.goal_id,
        kind=payload.kind,
        timestamp=payload.timestamp,
        estimated_minutes=payload.estimated_minutes,
        actual_minutes=payload.actual_minutes,
        on_time=payload.on_time,
        previous_title=payload.previous_title,
        new_title=payload.new_title,
        previous_minutes=payload.previous_minutes,
        new_minutes=payload.new_minutes,
        previous_date=payload.previous_date,
        new_date=payload.new_date,
    )

    metadata: Dict[str, Any] = {"route": "/users/{user_id}/observations", "kind": observation.kind.value}
    try:
        with trace("observation.record", metadata=metadata, user_id=str(user_id), request_id=request_id):
            recorded = record_observation(db, user_id, observation)
            db.commit()
    except ObservationConflictError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc
    except Exception:
        db.rollback()
        raise

    return ObservationCreateResponse(
        observation=ObservationSummary.from_observation(recorded.observation),
        sequence=recorded.sequence,
        profile_recomputed=recorded.recomputed,
        observation_count=recorded.observation_count,
        request_id=request_id or "",
    )


@router.get("/users/{user_id}/observations", response_model=ObservationListResponse, tags=["observations"])
def list_observations(
    user_id: UUID,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ObservationListResponse:
    request_id = getattr(http_request.state, "request_id", None)
    with trace("observation.list", user_id=str(user_id), request_id=request_id):
        log = load_observation_log(db, user_id)
    return ObservationListResponse(
        user_id=user_id,
        observations=[ObservationSummary.from_observation(observation) for observation in log],
        request_id=request_id or "",
    )


@router.get("/users/{user_id}/profile", response_model=ProfileResponse, tags=["observations"])
def get_profile(
    user_id: UUID,
    http_request: Request,
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Return the current profile snapshot and its prompt summary, if any."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace("profile.get", user_id=str(user_id), request_id=request_id) as span:
        aggregator = build_aggregator(load_observation_log(db, user_id))
        profile = aggregator.profile
        summary = summarize_profile(profile, threshold=settings.profile_personalization_threshold)
        if span:
            span.update(
                metadata={
                    "logged_observations": aggregator.count,
                    "snapshot_observations": profile.observation_count,
                    "personalized": summary is not None,
                }
            )

    return ProfileResponse(
        user_id=user_id,
        logged_observations=aggregator.count,
        profile=ExecutionProfileSchema.model_validate(profile.to_dict()),
        summary=summary,
        request_id=request_id or "",
    )
