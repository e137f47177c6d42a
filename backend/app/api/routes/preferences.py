"""User scheduling preference routes."""
from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from app.api.schemas.preferences import PreferencesResponse, PreferencesUpdateRequest
from app.db.deps import get_db
from app.observability.metrics import log_metric
from app.observability.tracing import trace
from app.services.user_service import load_preferences, save_preferences

router = APIRouter()


@router.get("/users/{user_id}/preferences", response_model=PreferencesResponse, tags=["preferences"])
def get_preferences(
    user_id: UUID,
    http_request: Request,
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    """Return stored preferences, filled with defaults where unset."""
    request_id = getattr(http_request.state, "request_id", None)
    with trace(
        "preferences.get",
        metadata={"route": "/users/{user_id}/preferences"},
        user_id=str(user_id),
        request_id=request_id,
    ):
        preferences = load_preferences(db, user_id)
    return PreferencesResponse.build(user_id, preferences, request_id)


@router.put("/users/{user_id}/preferences", response_model=PreferencesResponse, tags=["preferences"])
def put_preferences(
    user_id: UUID,
    payload: PreferencesUpdateRequest,
    http_request: Request,
    db: Session = Depends(get_db),
) -> PreferencesResponse:
    """Replace the user's preferences; invalid fields fall back to defaults."""
    request_id = getattr(http_request.state, "request_id", None)
    try:
        with trace(
            "preferences.update",
            metadata={"route": "/users/{user_id}/preferences"},
            user_id=str(user_id),
            request_id=request_id,
        ):
            preferences = save_preferences(db, user_id, payload.to_raw())
            db.commit()
    except Exception:
        db.rollback()
        raise

    log_metric("preferences.update.success", 1, metadata={"user_id": str(user_id)})
    return PreferencesResponse.build(user_id, preferences, request_id)
