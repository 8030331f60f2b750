"""
Progress tracking: mood check-ins, merged history, streaks and goals.
"""
import uuid
from datetime import timedelta

import pytest

from pranveda.core.timeutils import utcnow
from pranveda.services.progress_service import mood_direction

API = "/api/v1"
PROGRESS = f"{API}/wellness/progress"


def complete_meditation(client, headers, minutes=10):
    started = client.post(
        f"{API}/wellness/meditation/sessions/breathing-basics/start", headers=headers
    ).json()["data"]
    client.post(
        f"{API}/wellness/meditation/sessions/{started['id']}/complete",
        json={"duration_minutes": minutes},
        headers=headers,
    )


def test_mood_checkin(client, user_headers):
    resp = client.post(
        f"{PROGRESS}/mood-checkin",
        json={"mood_rating": 4, "energy_level": 3, "tags": [" Calm ", "rested"], "notes": "good day"},
        headers=user_headers,
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["mood_rating"] == 4
    assert data["tags"] == ["calm", "rested"]


@pytest.mark.parametrize(
    "payload",
    [
        {"mood_rating": 0},
        {"mood_rating": 6},
        {"mood_rating": 3, "tags": ["a", "b", "c", "d", "e", "f"]},
        {"mood_rating": 3, "sleep_quality": 9},
    ],
)
def test_mood_checkin_validation(client, user_headers, payload):
    resp = client.post(f"{PROGRESS}/mood-checkin", json=payload, headers=user_headers)
    assert resp.status_code == 422


def test_history_merges_types(client, user_headers):
    complete_meditation(client, user_headers)
    client.post(f"{PROGRESS}/mood-checkin", json={"mood_rating": 3}, headers=user_headers)

    resp = client.get(f"{PROGRESS}/history", headers=user_headers)
    assert resp.status_code == 200
    body = resp.json()["data"]
    assert body["pagination"]["total"] == 2
    assert [e["type"] for e in body["items"]] == ["mood", "meditation"]

    only_mood = client.get(f"{PROGRESS}/history", params={"type": "mood"}, headers=user_headers).json()["data"]
    assert [e["type"] for e in only_mood["items"]] == ["mood"]


def test_history_pages_cover_the_whole_timeline(client, user_headers):
    complete_meditation(client, user_headers)
    complete_meditation(client, user_headers)
    for rating in (2, 3, 4):
        client.post(f"{PROGRESS}/mood-checkin", json={"mood_rating": rating}, headers=user_headers)

    full = client.get(f"{PROGRESS}/history", params={"limit": 100}, headers=user_headers).json()["data"]
    assert full["pagination"]["total"] == 5

    paged = []
    for page in (1, 2, 3):
        body = client.get(f"{PROGRESS}/history", params={"page": page, "limit": 2}, headers=user_headers).json()["data"]
        assert body["pagination"]["total"] == 5
        paged.extend(e["id"] for e in body["items"])
    assert paged == [e["id"] for e in full["items"]]
    assert [e["type"] for e in full["items"]][:3] == ["mood", "mood", "mood"]


@pytest.mark.parametrize("params", [{"page": 0}, {"limit": 101}, {"type": "sleep"}])
def test_history_rejects_bad_params(client, user_headers, params):
    assert client.get(f"{PROGRESS}/history", params=params, headers=user_headers).status_code == 422


def test_history_rejects_inverted_range(client, user_headers):
    today = utcnow().date()
    resp = client.get(
        f"{PROGRESS}/history",
        params={"start_date": str(today), "end_date": str(today - timedelta(days=1))},
        headers=user_headers,
    )
    assert resp.status_code == 422


def test_streaks_and_stats(client, user_headers):
    complete_meditation(client, user_headers, minutes=10)
    client.post(f"{PROGRESS}/mood-checkin", json={"mood_rating": 5}, headers=user_headers)

    streaks = client.get(f"{PROGRESS}/streaks", headers=user_headers).json()["data"]
    assert streaks["meditation"]["current"] == 1
    assert streaks["workout"]["current"] == 0
    assert streaks["mood_checkin"]["current"] == 1
    assert streaks["overall"]["current"] == 1

    stats = client.get(f"{PROGRESS}/stats", headers=user_headers).json()["data"]
    assert stats["meditation_sessions"] == 1
    assert stats["total_minutes"] == 10
    assert stats["average_mood"] == 5.0


def test_analytics(client, user_headers):
    complete_meditation(client, user_headers, minutes=8)
    client.post(f"{PROGRESS}/mood-checkin", json={"mood_rating": 2}, headers=user_headers)
    client.post(f"{PROGRESS}/mood-checkin", json={"mood_rating": 4}, headers=user_headers)

    data = client.get(f"{PROGRESS}/analytics", params={"period": "7d"}, headers=user_headers).json()["data"]
    assert data["activity"][0]["meditation_minutes"] == 8
    assert data["mood_trend"][0]["average_mood"] == 3.0
    assert data["mood_trend"][0]["checkins"] == 2

    mood_only = client.get(f"{PROGRESS}/analytics", params={"metric": "mood"}, headers=user_headers).json()["data"]
    assert mood_only["activity"] == []


def test_mood_direction():
    assert mood_direction([3.0]) is None
    assert mood_direction([2.0, 2.0, 4.0, 4.0]) == "improving"
    assert mood_direction([4.0, 4.0, 2.0]) == "declining"
    assert mood_direction([3.0, 3.1]) == "stable"


# ----- Goals -----


def test_goal_lifecycle(client, user_headers):
    resp = client.post(
        f"{PROGRESS}/goals",
        json={"title": "Meditate often", "category": "meditation", "target_value": 10},
        headers=user_headers,
    )
    assert resp.status_code == 201
    goal = resp.json()["data"]
    assert goal["status"] == "active"

    resp = client.put(f"{PROGRESS}/goals/{goal['id']}", json={"current_value": 4}, headers=user_headers)
    assert resp.json()["data"]["current_value"] == 4
    assert resp.json()["data"]["status"] == "active"

    resp = client.put(f"{PROGRESS}/goals/{goal['id']}", json={"current_value": 10}, headers=user_headers)
    assert resp.json()["data"]["status"] == "completed"

    active = client.get(f"{PROGRESS}/goals", headers=user_headers).json()["data"]
    assert active == []
    everything = client.get(f"{PROGRESS}/goals", params={"include_inactive": True}, headers=user_headers)
    assert len(everything.json()["data"]) == 1


def test_goal_validation(client, user_headers):
    assert client.post(f"{PROGRESS}/goals", json={"title": "x", "target_value": 0}, headers=user_headers).status_code == 422
    past = str(utcnow().date() - timedelta(days=1))
    resp = client.post(
        f"{PROGRESS}/goals",
        json={"title": "Late", "target_value": 1, "target_date": past},
        headers=user_headers,
    )
    assert resp.status_code == 422


def test_goal_ownership(client, user_headers, other_headers):
    goal = client.post(
        f"{PROGRESS}/goals", json={"title": "Mine", "target_value": 3}, headers=user_headers
    ).json()["data"]

    resp = client.put(f"{PROGRESS}/goals/{goal['id']}", json={"current_value": 1}, headers=other_headers)
    assert resp.status_code == 403
    resp = client.put(f"{PROGRESS}/goals/{uuid.uuid4()}", json={"current_value": 1}, headers=user_headers)
    assert resp.status_code == 404
    resp = client.put(f"{PROGRESS}/goals/{goal['id']}", json={"status": "archived"}, headers=user_headers)
    assert resp.status_code == 422
