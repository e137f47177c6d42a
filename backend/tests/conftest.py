"""Shared fixtures: in-memory SQLite app client and a scripted planning backend."""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.deps import get_db
from app.db.models.goal import Goal
from app.db.models.milestone import Milestone
from app.db.models.task import Task
from app.db.models.task_observation import TaskObservationRecord
from app.db.models.user import User
from app.db.models.user_preferences import UserPreferences
from app.main import app
from app.services.planning_backend import get_planning_backend


class FakePlanningBackend:
    """Returns a canned response (or raises) and remembers every prompt it saw."""

    def __init__(self, response: Any = None, error: Optional[Exception] = None) -> None:
        if response is not None and not isinstance(response, str):
            response = json.dumps(response)
        self.response = response
        self.error = error
        self.calls: List[Tuple[str, str]] = []

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append((system_prompt, user_prompt))
        if self.error is not None:
            raise self.error
        return self.response


def sample_plan(start: str = "2026-03-02") -> Dict[str, Any]:
    return {
        "milestones": [
            {"title": "Draft outline", "targetDate": start, "order": 2},
            {"title": "Pick a topic", "targetDate": start, "order": 1},
        ],
        "tasks": [
            {
                "title": "Research topics",
                "estimatedMinutes": 30,
                "scheduledDate": start,
                "scheduledStartTime": "9:00",
                "milestoneIndex": 1,
                "order": 1,
            },
            {
                "title": "Write outline",
                "estimatedMinutes": 45,
                "scheduledDate": start,
                "scheduledStartTime": "10:30",
                "milestoneIndex": 0,
                "order": 2,
            },
        ],
    }


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):  # pragma: no cover - sqlite setup
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    for model in (User, UserPreferences, Goal, Milestone, Task, TaskObservationRecord):
        model.__table__.create(bind=engine)

    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield TestingSessionLocal
    engine.dispose()


@pytest.fixture()
def backend() -> FakePlanningBackend:
    return FakePlanningBackend(response=sample_plan())


@pytest.fixture()
def client(session_factory, backend):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_planning_backend] = lambda: backend
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
