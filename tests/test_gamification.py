"""
Celebrations, badges, levels and the leaderboard.
"""
import uuid

API = "/api/v1"
GAMIFICATION = f"{API}/wellness/gamification"


def milestone(client, headers, event_type, data=None):
    resp = client.post(
        f"{GAMIFICATION}/milestone",
        json={"event_type": event_type, "data": data},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


def bearer(identity, uid, **kwargs):
    return {"Authorization": f"Bearer {identity.add_user(uid, **kwargs)}"}


def test_milestone_creates_one_celebration(client, user_headers):
    celebration = milestone(client, user_headers, "streak_milestone", {"days": 14})
    assert celebration["score_increment"] == 50
    assert celebration["animation_type"] == "fireworks"
    assert celebration["message"] == "Incredible 14-day streak!"
    assert celebration["viewed"] is False

    pending = client.get(f"{GAMIFICATION}/celebrations", headers=user_headers).json()["data"]
    assert [c["id"] for c in pending] == [celebration["id"]]


def test_milestone_rejects_unknown_event(client, user_headers):
    resp = client.post(f"{GAMIFICATION}/milestone", json={"event_type": "party"}, headers=user_headers)
    assert resp.status_code == 422


def test_badge_unlocks_once(client, user_headers):
    first = milestone(client, user_headers, "badge_unlock", {"badge_unlocked": "meditation_streak_7"})
    assert first["badge_unlocked"] == "meditation_streak_7"
    assert first["message"] == "Congratulations! You unlocked the Week Warrior badge!"

    second = milestone(client, user_headers, "badge_unlock", {"badge_unlocked": "meditation_streak_7"})
    assert second["badge_unlocked"] is None

    badges = client.get(f"{GAMIFICATION}/badges", headers=user_headers).json()["data"]
    unlocked = [b for b in badges if b["unlocked"]]
    assert [b["badge_type"] for b in unlocked] == ["meditation_streak_7"]


def test_mark_viewed_is_idempotent(client, user_headers):
    celebration = milestone(client, user_headers, "level_up", {"level": 3})
    url = f"{GAMIFICATION}/celebrations/{celebration['id']}/viewed"

    first = client.put(url, headers=user_headers)
    assert first.status_code == 200
    viewed_at = first.json()["data"]["viewed_at"]
    assert viewed_at is not None

    second = client.put(url, headers=user_headers)
    assert second.status_code == 200
    assert second.json()["data"]["viewed"] is True
    assert second.json()["data"]["viewed_at"] == viewed_at

    assert client.get(f"{GAMIFICATION}/celebrations", headers=user_headers).json()["data"] == []


def test_mark_viewed_errors(client, user_headers, other_headers):
    celebration = milestone(client, user_headers, "level_up")
    assert client.put(
        f"{GAMIFICATION}/celebrations/{celebration['id']}/viewed", headers=other_headers
    ).status_code == 403
    assert client.put(f"{GAMIFICATION}/celebrations/{uuid.uuid4()}/viewed", headers=user_headers).status_code == 404
    assert client.put(f"{GAMIFICATION}/celebrations/not-a-uuid/viewed", headers=user_headers).status_code == 422


def test_levels_and_rewards(client, user_headers):
    # 200 (level_up) + 100 (badge_unlock) + 10 badge points
    milestone(client, user_headers, "level_up")
    milestone(client, user_headers, "badge_unlock", {"badge_unlocked": "first_meditation"})

    level = client.get(f"{GAMIFICATION}/levels", headers=user_headers).json()["data"]
    assert level["total_points"] == 310
    assert level["level"] == 4
    assert level["current_level_points"] == 10

    rewards = client.get(f"{GAMIFICATION}/rewards", headers=user_headers).json()["data"]
    assert {r["id"]: r["unlocked"] for r in rewards} == {
        "reward-1": False,
        "reward-2": False,
        "reward-3": True,
    }


def test_leaderboard_ordering(client, identity):
    zed = bearer(identity, "zed")
    amy = bearer(identity, "amy")
    bob = bearer(identity, "bob")
    shy = bearer(identity, "shy")

    milestone(client, zed, "streak_milestone")  # 50
    milestone(client, amy, "streak_milestone")  # 50, wins the tie on user_id
    milestone(client, bob, "level_up")  # 200
    milestone(client, shy, "level_up")
    client.put(
        f"{API}/auth/preferences",
        json={"privacy": {"leaderboard_participation": False}},
        headers=shy,
    )

    resp = client.get(f"{GAMIFICATION}/leaderboard")
    assert resp.status_code == 200
    board = resp.json()["data"]
    assert [(e["rank"], e["user_id"], e["score"]) for e in board["entries"]] == [
        (1, "bob", 200),
        (2, "amy", 50),
        (3, "zed", 50),
    ]
    assert board["total_participants"] == 3

    limited = client.get(f"{GAMIFICATION}/leaderboard", params={"limit": 1}).json()["data"]
    assert [e["user_id"] for e in limited["entries"]] == ["bob"]

    streaks = client.get(f"{GAMIFICATION}/leaderboard", params={"category": "streaks"}).json()["data"]
    assert [e["user_id"] for e in streaks["entries"]] == ["amy", "zed"]

    ranking = client.get(f"{GAMIFICATION}/ranking", headers=zed).json()["data"]
    assert ranking["rank"] == 3
    assert ranking["score"] == 50
    assert ranking["percentile"] == 33.3


def test_leaderboard_validates_params(client):
    assert client.get(f"{GAMIFICATION}/leaderboard", params={"limit": 0}).status_code == 422
    assert client.get(f"{GAMIFICATION}/leaderboard", params={"limit": 101}).status_code == 422
    assert client.get(f"{GAMIFICATION}/leaderboard", params={"category": "chess"}).status_code == 422


def test_empty_leaderboard(client):
    board = client.get(f"{GAMIFICATION}/leaderboard").json()["data"]
    assert board["entries"] == []
    assert board["total_participants"] == 0
