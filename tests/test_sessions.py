"""
Meditation and workout session lifecycle.
"""
import uuid

import pytest
from sqlmodel import select

from pranveda.models.gamification import CelebrationEvent
from pranveda.models.session import MeditationSession

API = "/api/v1"
MEDITATION = f"{API}/wellness/meditation"
WORKOUT = f"{API}/wellness/workout"


def start_meditation(client, headers, content_id="breathing-basics", **payload):
    resp = client.post(f"{MEDITATION}/sessions/{content_id}/start", json=payload or None, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


# ----- Catalog -----


def test_catalog_filters(client, user_headers):
    resp = client.get(f"{MEDITATION}/sessions", params={"duration": 10}, headers=user_headers)
    assert resp.status_code == 200
    items = resp.json()["data"]
    assert items
    assert all(item["duration"] <= 10 for item in items)
    assert all(item["audio_url"].startswith("/audio/") for item in items)

    resp = client.get(f"{MEDITATION}/sessions", params={"difficulty": "expert"}, headers=user_headers)
    assert resp.status_code == 422


def test_unknown_content_is_404(client, user_headers):
    resp = client.get(f"{MEDITATION}/sessions/not-a-session", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


def test_public_catalog_needs_no_token(client):
    assert client.get(f"{MEDITATION}/categories").status_code == 200
    assert client.get(f"{MEDITATION}/techniques").status_code == 200
    assert client.get(f"{WORKOUT}/categories").status_code == 200
    assert client.get(f"{WORKOUT}/exercises").status_code == 200


# ----- Lifecycle -----


def test_start_and_complete_meditation(client, user_headers, db_session):
    started = start_meditation(client, user_headers, expected_duration=12)
    assert started["status"] == "in_progress"
    assert started["expected_duration"] == 12

    resp = client.post(
        f"{MEDITATION}/sessions/{started['id']}/complete",
        json={"duration_minutes": 11, "mood_before": 2, "mood_after": 4, "notes": " calmer "},
        headers=user_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["session"]["status"] == "completed"
    assert data["session"]["duration_minutes"] == 11
    assert data["session"]["notes"] == "calmer"

    celebration = data["celebration"]
    assert celebration["event_type"] == "meditation_complete"
    assert celebration["score_increment"] == 10
    assert celebration["badge_unlocked"] == "first_meditation"

    rows = db_session.exec(select(CelebrationEvent)).all()
    assert len(rows) == 1


def test_complete_twice_is_conflict(client, user_headers):
    started = start_meditation(client, user_headers)
    url = f"{MEDITATION}/sessions/{started['id']}/complete"
    assert client.post(url, json={}, headers=user_headers).status_code == 200
    resp = client.post(url, json={}, headers=user_headers)
    assert resp.status_code == 409


def test_complete_other_users_session_is_forbidden(client, user_headers, other_headers, db_session):
    started = start_meditation(client, user_headers)

    resp = client.post(
        f"{MEDITATION}/sessions/{started['id']}/complete",
        json={"duration_minutes": 5, "notes": "not mine"},
        headers=other_headers,
    )
    assert resp.status_code == 403

    record = db_session.get(MeditationSession, uuid.UUID(started["id"]))
    assert record.status == "in_progress"
    assert record.duration_minutes is None
    assert record.notes is None
    assert db_session.exec(select(CelebrationEvent)).all() == []


@pytest.mark.parametrize("session_id", ["abc", str(uuid.uuid4())])
def test_complete_unknown_session_without_body_is_404(client, user_headers, session_id):
    resp = client.post(f"{MEDITATION}/sessions/{session_id}/complete", headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


def test_complete_without_body_uses_expected_duration(client, user_headers, db_session):
    started = start_meditation(client, user_headers)
    assert started["celebration_triggered"] is False

    resp = client.post(f"{MEDITATION}/sessions/{started['id']}/complete", headers=user_headers)
    assert resp.status_code == 200, resp.text
    data = resp.json()["data"]
    assert data["session"]["duration_minutes"] == 10
    assert data["session"]["celebration_triggered"] is True
    assert data["celebration"]["event_type"] == "meditation_complete"

    record = db_session.get(MeditationSession, uuid.UUID(started["id"]))
    assert record.celebration_triggered is True

    workout = client.post(f"{WORKOUT}/routines/morning-yoga/start", headers=user_headers).json()["data"]
    resp = client.post(f"{WORKOUT}/routines/{workout['id']}/complete", headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["session"]["duration_minutes"] == 15


@pytest.mark.parametrize("session_id", ["abc", str(uuid.uuid4())])
def test_complete_unknown_session_is_404(client, user_headers, session_id):
    resp = client.post(f"{MEDITATION}/sessions/{session_id}/complete", json={}, headers=user_headers)
    assert resp.status_code == 404
    assert resp.json()["error"] == "NotFoundError"


def test_complete_rejects_out_of_range_metrics(client, user_headers):
    started = start_meditation(client, user_headers)
    resp = client.post(
        f"{MEDITATION}/sessions/{started['id']}/complete",
        json={"duration_minutes": 481, "mood_after": 6},
        headers=user_headers,
    )
    assert resp.status_code == 422
    fields = {d["field"] for d in resp.json()["details"]}
    assert {"duration_minutes", "mood_after"} <= fields


def test_progress_and_rating(client, user_headers):
    started = start_meditation(client, user_headers)
    base = f"{MEDITATION}/sessions/{started['id']}"

    resp = client.post(f"{base}/progress", json={"current_time": 95}, headers=user_headers)
    assert resp.status_code == 200
    assert resp.json()["data"]["progress_seconds"] == 95

    client.post(f"{base}/complete", json={}, headers=user_headers)
    assert client.post(f"{base}/progress", json={"current_time": 120}, headers=user_headers).status_code == 409

    # ratings may still be amended after completion
    assert client.post(f"{base}/rate", json={"rating": 3}, headers=user_headers).status_code == 200
    resp = client.post(f"{base}/rate", json={"rating": 5, "feedback": "lovely"}, headers=user_headers)
    assert resp.json()["data"]["rating"] == 5
    assert resp.json()["data"]["feedback"] == "lovely"


# ----- History & stats -----


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 0}, {"limit": 51}])
def test_history_rejects_bad_pagination(client, user_headers, params):
    resp = client.get(f"{MEDITATION}/history", params=params, headers=user_headers)
    assert resp.status_code == 422


def test_history_and_stats(client, user_headers):
    for content_id, minutes in [("breathing-basics", 10), ("mindfulness-5min", 5)]:
        started = start_meditation(client, user_headers, content_id=content_id)
        client.post(
            f"{MEDITATION}/sessions/{started['id']}/complete",
            json={"duration_minutes": minutes, "mood_before": 2, "mood_after": 3},
            headers=user_headers,
        )
    start_meditation(client, user_headers)  # still in progress

    resp = client.get(f"{MEDITATION}/history", params={"limit": 1}, headers=user_headers)
    body = resp.json()["data"]
    assert len(body["items"]) == 1
    assert body["items"][0]["content_id"] == "mindfulness-5min"
    assert body["pagination"] == {"page": 1, "limit": 1, "total": 2, "has_more": True}

    stats = client.get(f"{MEDITATION}/stats", params={"period": "7d"}, headers=user_headers).json()["data"]
    assert stats["total_sessions"] == 2
    assert stats["total_minutes"] == 15
    assert stats["average_duration"] == 7.5
    assert stats["current_streak"] == 1
    assert stats["average_mood_improvement"] == 1.0

    resp = client.get(f"{MEDITATION}/stats", params={"period": "2w"}, headers=user_headers)
    assert resp.status_code == 422


def test_recommendations_respect_experience(client, user_headers):
    client.post(f"{API}/auth/register", json={"experience_level": "beginner"}, headers=user_headers)
    resp = client.get(f"{MEDITATION}/recommendations", params={"stress_level": 5}, headers=user_headers)
    items = resp.json()["data"]
    assert 0 < len(items) <= 3
    assert all(item["difficulty"] == "beginner" for item in items)
    assert items[0]["category"] == "breathing"


# ----- Workouts -----


def test_workout_lifecycle(client, user_headers):
    resp = client.post(f"{WORKOUT}/routines/beginner-cardio/start", headers=user_headers)
    assert resp.status_code == 201
    started = resp.json()["data"]
    assert started["expected_duration"] == 20

    resp = client.post(
        f"{WORKOUT}/routines/{started['id']}/complete",
        json={"duration_minutes": 22, "calories_burned": 180, "reps_completed": 40, "difficulty_rating": 3},
        headers=user_headers,
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["session"]["calories_burned"] == 180
    assert data["celebration"]["event_type"] == "workout_complete"
    assert data["celebration"]["score_increment"] == 15

    stats = client.get(f"{WORKOUT}/stats", headers=user_headers).json()["data"]
    assert stats["total_calories"] == 180


def test_workout_complete_validates_duration(client, user_headers):
    started = client.post(f"{WORKOUT}/routines/beginner-cardio/start", headers=user_headers).json()["data"]
    resp = client.post(
        f"{WORKOUT}/routines/{started['id']}/complete",
        json={"duration_minutes": 181},
        headers=user_headers,
    )
    assert resp.status_code == 422


def test_unknown_routine_is_404(client, user_headers):
    assert client.post(f"{WORKOUT}/routines/nope/start", headers=user_headers).status_code == 404
