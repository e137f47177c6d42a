"""Tests for stored user preferences."""
from __future__ import annotations

from uuid import uuid4

from app.db.models.user_preferences import UserPreferences


def test_unknown_user_gets_default_preferences(client) -> None:
    user_id = uuid4()

    response = client.get(f"/users/{user_id}/preferences")

    assert response.status_code == 200
    body = response.json()
    assert body["available_hours_per_day"] == 2.0
    assert body["preferred_task_duration_minutes"] == 30
    assert body["preferred_time_blocks"] == ["morning"]
    assert body["work_days"] == ["monday", "tuesday", "wednesday", "thursday", "friday"]
    assert body["preferred_start_time"] == "09:00"
    assert body["max_tasks_per_day"] == 4


def test_put_normalizes_and_persists(client, session_factory) -> None:
    user_id = uuid4()

    response = client.put(
        f"/users/{user_id}/preferences",
        json={
            "available_hours_per_day": 3,
            "preferred_task_duration_minutes": -10,
            "preferred_time_blocks": ["Evening", "bogus", "morning"],
            "work_days": ["saturday"],
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["preferred_task_duration_minutes"] == 30
    assert body["preferred_time_blocks"] == ["evening", "morning"]
    assert body["preferred_start_time"] == "18:00"
    assert body["max_tasks_per_day"] == 6

    with session_factory() as db:
        row = db.get(UserPreferences, user_id)
        assert row.available_hours_per_day == 3.0
        assert row.preferred_time_blocks == ["evening", "morning"]
        assert row.work_days == ["saturday"]

    fetched = client.get(f"/users/{user_id}/preferences").json()
    assert fetched["work_days"] == ["saturday"]


def test_second_put_replaces_preferences(client) -> None:
    user_id = uuid4()
    client.put(f"/users/{user_id}/preferences", json={"preferred_time_blocks": ["afternoon"]})

    response = client.put(f"/users/{user_id}/preferences", json={})

    assert response.status_code == 200
    assert response.json()["preferred_time_blocks"] == ["morning"]
