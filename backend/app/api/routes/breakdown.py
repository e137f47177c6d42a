"""Stateless plan breakdown endpoint."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from fastapi import APIRouter, Body, Depends, Request, status
from fastapi.responses import JSONResponse

from app.api.schemas.breakdown import BreakdownRequest, BreakdownResponse
from app.core.config import settings
from app.core.errors import BackendAuthError, BackendRateLimitError, GoalValidationError
from app.observability.metrics import record_latency
from app.services.plan_generator import PlanRequest, generate_plan
from app.services.planning_backend import PlanningBackend, get_planning_backend

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/api/breakdown", response_model=BreakdownResponse, tags=["planning"])
def breakdown_goal(
    http_request: Request,
    payload: Optional[BreakdownRequest] = Body(default=None),
    backend: PlanningBackend = Depends(get_planning_backend),
) -> Union[BreakdownResponse, JSONResponse]:
    """Break a goal into milestones and scheduled tasks."""
    request_id = getattr(http_request.state, "request_id", None)
    payload = payload or BreakdownRequest()
    plan_request = PlanRequest(
        goal=payload.goal,
        deadline=payload.deadline,
        current_date=payload.current_date,
        preferences=payload.preferences,
        behavioral_profile=payload.behavioral_profile,
        context=payload.context,
    )

    with record_latency("api.breakdown", metadata={"route": "/api/breakdown"}) as metric_metadata:
        try:
            plan = generate_plan(plan_request, backend, request_id=request_id)
        except GoalValidationError as exc:
            metric_metadata["outcome"] = "invalid_goal"
            return _failure(status.HTTP_400_BAD_REQUEST, str(exc))
        except BackendAuthError:
            logger.error("Planning backend rejected credentials or none are configured")
            metric_metadata["outcome"] = "auth_error"
            return _failure(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Server configuration error",
                details="Invalid or missing API key",
            )
        except BackendRateLimitError:
            metric_metadata["outcome"] = "rate_limited"
            return _failure(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Rate limit exceeded",
                details="Please try again in a moment",
            )
        except Exception as exc:
            logger.exception("Plan generation failed")
            metric_metadata["outcome"] = "error"
            return _failure(
                status.HTTP_500_INTERNAL_SERVER_ERROR,
                "Failed to generate plan",
                details=None if settings.is_production else str(exc),
            )
        metric_metadata["outcome"] = "ok"

    return BreakdownResponse(goal=plan.goal, milestones=plan.milestones, tasks=plan.tasks)


def _failure(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)
