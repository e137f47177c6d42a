"""Helpers for working with users and their stored preferences."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models.user import User
from app.db.models.user_preferences import UserPreferences
from app.services.preference_normalizer import NormalizedPreferences, normalize_preferences

logger = logging.getLogger(__name__)


def get_or_create_user(db: Session, user_id: UUID) -> User:
    """Fetch an existing user or create a new row safely."""
    user = db.get(User, user_id)
    if user:
        return user

    user = User(id=user_id)
    db.add(user)
    try:
        db.flush()
        return user
    except IntegrityError:
        db.rollback()
        existing = db.get(User, user_id)
        if existing:
            return existing
        raise


def load_preferences(db: Session, user_id: UUID) -> NormalizedPreferences:
    """Return the user's stored preferences, or the defaults when none are stored."""
    row = db.get(UserPreferences, user_id)
    if row is None:
        return normalize_preferences(None)
    return normalize_preferences(_row_payload(row))


def save_preferences(db: Session, user_id: UUID, raw: Optional[Mapping[str, Any]]) -> NormalizedPreferences:
    """Normalize ``raw`` and upsert it as the user's current preferences.

    The caller owns the transaction.
    """
    get_or_create_user(db, user_id)
    preferences = normalize_preferences(raw)

    row = db.get(UserPreferences, user_id)
    if row is None:
        row = UserPreferences(user_id=user_id)
    row.available_hours_per_day = preferences.available_hours_per_day
    row.preferred_task_duration_minutes = preferences.preferred_task_duration_minutes
    row.preferred_time_blocks = [block.value for block in preferences.preferred_time_blocks]
    row.work_days = [day.value for day in preferences.work_days]
    db.add(row)
    db.flush()

    logger.info("Saved preferences for user %s", user_id)
    return preferences


def _row_payload(row: UserPreferences) -> dict:
    return {
        "availableHoursPerDay": row.available_hours_per_day,
        "preferredTaskDurationMinutes": row.preferred_task_duration_minutes,
        "preferredTimeBlocks": row.preferred_time_blocks,
        "workDays": row.work_days,
    }
