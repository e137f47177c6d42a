"""Tests for the observation log, profile endpoint and append serialization."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.services.execution_profile import ObservationKind, TaskObservation
from app.services.observation_store import (
    ObservationConflictError,
    append_observation,
    load_observation_log,
    record_observation,
)
from app.services.user_service import get_or_create_user

BASE = datetime(2026, 3, 2, 8, 0, tzinfo=timezone(timedelta(hours=2)))


def _post(client, user_id, index: int, **extra):
    payload = {
        "task_id": str(uuid4()),
        "kind": "completed",
        "timestamp": (BASE + timedelta(hours=index)).isoformat(),
        "estimated_minutes": 15,
        **extra,
    }
    return client.post(f"/users/{user_id}/observations", json=payload)


def test_profile_is_recomputed_every_fifth_observation(client) -> None:
    user_id = uuid4()

    results = [_post(client, user_id, i).json() for i in range(6)]

    assert [result["sequence"] for result in results] == [1, 2, 3, 4, 5, 6]
    assert [result["profile_recomputed"] for result in results] == [False, False, False, False, True, False]
    first = results[0]["observation"]
    assert first["day_of_week"] == 2
    assert first["hour_of_day"] == 8
    assert first["time_block"] == "morning"


def test_profile_summary_appears_at_ten_observations(client) -> None:
    user_id = uuid4()
    for i in range(9):
        assert _post(client, user_id, i).status_code == 201

    nine = client.get(f"/users/{user_id}/profile").json()
    assert nine["logged_observations"] == 9
    assert nine["profile"]["observation_count"] == 5
    assert nine["summary"] is None

    _post(client, user_id, 9)
    ten = client.get(f"/users/{user_id}/profile").json()

    assert ten["profile"]["observation_count"] == 10
    assert ten["profile"]["best_time_block"] == "morning"
    assert ten["summary"].startswith("User behavioral patterns (last 10 observations):")


def test_list_returns_log_in_append_order_with_local_offset(client) -> None:
    user_id = uuid4()
    _post(client, user_id, 0, kind="skipped")
    _post(client, user_id, 1, kind="rescheduled", previous_date="2026-03-02", new_date="2026-03-04")

    response = client.get(f"/users/{user_id}/observations")

    assert response.status_code == 200
    observations = response.json()["observations"]
    assert [item["kind"] for item in observations] == ["skipped", "rescheduled"]
    assert observations[1]["new_date"] == "2026-03-04"
    assert datetime.fromisoformat(observations[0]["timestamp"]).utcoffset() == timedelta(hours=2)


def test_invalid_kind_is_rejected(client) -> None:
    response = _post(client, uuid4(), 0, kind="abandoned")

    assert response.status_code == 422


def test_duplicate_sequence_is_a_conflict(session_factory) -> None:
    user_id = uuid4()
    with session_factory() as db:
        get_or_create_user(db, user_id)
        first = TaskObservation.record(task_id=uuid4(), kind=ObservationKind.COMPLETED, timestamp=BASE)
        append_observation(db, user_id, first, sequence=1)
        db.commit()

        second = TaskObservation.record(task_id=uuid4(), kind=ObservationKind.SKIPPED, timestamp=BASE)
        with pytest.raises(ObservationConflictError):
            append_observation(db, user_id, second, sequence=1)

        assert [obs.id for obs in load_observation_log(db, user_id)] == [first.id]


def test_record_observation_reports_count_and_snapshot(session_factory) -> None:
    user_id = uuid4()
    with session_factory() as db:
        for i in range(5):
            recorded = record_observation(
                db,
                user_id,
                TaskObservation.record(task_id=uuid4(), kind="completed", timestamp=BASE + timedelta(hours=i)),
            )
        db.commit()

    assert recorded.sequence == 5
    assert recorded.recomputed is True
    assert recorded.profile.observation_count == 5
    assert recorded.profile.overall_completion_rate == 1.0


def test_edit_observation_keeps_duration_change(client) -> None:
    user_id = uuid4()

    response = _post(client, user_id, 0, kind="edited", estimated_minutes=45, previous_minutes=30, new_minutes=45)

    assert response.status_code == 201
    stored = client.get(f"/users/{user_id}/observations").json()["observations"][0]
    assert (stored["previous_minutes"], stored["new_minutes"]) == (30, 45)
