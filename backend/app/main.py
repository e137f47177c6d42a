"""Main FastAPI application for the DadTrack planning backend."""
from datetime import datetime, timezone

from fastapi import FastAPI, Request

from app.api.routes.breakdown import router as breakdown_router
from app.api.routes.goals import router as goals_router
from app.api.routes.observations import router as observations_router
from app.api.routes.preferences import router as preferences_router
from app.api.routes.task import router as task_router
from app.core.config import settings
from app.core.logging import configure_logging
from app.core.middleware import RequestIDMiddleware
from app.observability.client import init_opik
from app.observability.tracing import trace

configure_logging(log_level=settings.log_level, environment=settings.environment)

app = FastAPI(title=settings.app_name, version=settings.app_version)
app.add_middleware(RequestIDMiddleware)
app.include_router(breakdown_router)
app.include_router(preferences_router)
app.include_router(observations_router)
app.include_router(goals_router)
app.include_router(task_router)

ENDPOINTS = {
    "breakdown": "POST /api/breakdown",
    "health": "GET /health",
    "preferences": "GET|PUT /users/{user_id}/preferences",
    "observations": "GET|POST /users/{user_id}/observations",
    "profile": "GET /users/{user_id}/profile",
    "goals": "POST /users/{user_id}/goals, GET /goals/{goal_id}",
    "tasks": "GET /tasks, POST /tasks/{task_id}/complete|skip|reschedule, PATCH /tasks/{task_id}",
}


@app.on_event("startup")
async def startup_observability() -> None:
    """Initialize observability backends after the event loop starts."""
    init_opik()


@app.get("/health", tags=["health"], summary="Readiness check")
async def health_check(request: Request) -> dict[str, str]:
    """Return a simple status payload so automation can check the API."""
    with trace("http.health_check", metadata={"route": "/health"}, request_id=request.state.request_id):
        return {
            "status": "ok",
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        }


@app.get("/", tags=["health"], summary="Service metadata")
async def root() -> dict:
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "phase": settings.app_phase,
        "endpoints": ENDPOINTS,
    }
