"""
Audio catalog, playback feedback and health endpoints.
"""
from pranveda.core.storage_utils import AudioStorage

API = "/api/v1"
AUDIO = f"{API}/audio"


def test_celebration_audio(client):
    tracks = client.get(f"{AUDIO}/celebrations").json()["data"]
    assert len(tracks) == 5

    level = client.get(f"{AUDIO}/celebrations", params={"event_type": "level_up"}).json()["data"]
    assert [t["id"] for t in level] == ["celebration-level"]
    assert level[0]["url"] == "/audio/celebrations/level-up.mp3"


def test_meditation_audio_duration_is_a_maximum(client):
    tracks = client.get(f"{AUDIO}/meditation", params={"duration": 5}).json()["data"]
    assert tracks
    assert all(t["duration_seconds"] <= 300 for t in tracks)

    breathing = client.get(f"{AUDIO}/meditation", params={"category": "breathing"}).json()["data"]
    assert {t["category"] for t in breathing} == {"breathing"}


def test_ambient_and_categories(client):
    rain = client.get(f"{AUDIO}/ambient", params={"type": "rain"}).json()["data"]
    assert [t["id"] for t in rain] == ["rain-ambient"]

    categories = {c["id"]: c["count"] for c in client.get(f"{AUDIO}/categories").json()["data"]}
    assert categories == {"meditation": 4, "ambient": 3, "celebration": 5}


def test_feedback_stores_bucket_path(client, user_headers):
    public_url = "https://proj.supabase.co/storage/v1/object/public/audio/ambient/rain.mp3?t=1"
    resp = client.post(
        f"{AUDIO}/feedback",
        json={"audio_type": "ambient", "file_path": public_url, "feedback_type": "like", "volume_level": 70},
        headers=user_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["data"]["file_path"] == "ambient/rain.mp3"


def test_feedback_validation(client, user_headers):
    resp = client.post(
        f"{AUDIO}/feedback",
        json={"audio_type": "ambient", "file_path": "ambient/rain.mp3", "feedback_type": "like", "volume_level": 101},
        headers=user_headers,
    )
    assert resp.status_code == 422
    resp = client.post(
        f"{AUDIO}/feedback",
        json={"audio_type": "ambient", "file_path": "ambient/rain.mp3", "feedback_type": "love"},
        headers=user_headers,
    )
    assert resp.status_code == 422


def test_feedback_requires_token(client):
    resp = client.post(
        f"{AUDIO}/feedback",
        json={"audio_type": "ambient", "file_path": "ambient/rain.mp3", "feedback_type": "play"},
    )
    assert resp.status_code == 401


def test_extract_path_from_public_url():
    storage = AudioStorage(None, "audio")
    assert storage.extract_path_from_public_url("https://x.supabase.co/storage/v1/object/public/audio/a/b.mp3") == "a/b.mp3"
    assert storage.extract_path_from_public_url("https://example.com/a/b.mp3") is None
    assert storage.normalize_path("/meditation/x.mp3") == "meditation/x.mp3"


# ----- Health -----


def test_health(client):
    resp = client.get(f"{API}/health")
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "healthy"
    assert data["components"]["database"]["status"] == "healthy"
    assert data["components"]["ai"] == {"status": "configured", "model": "fake-gemini"}
    assert data["components"]["identity"]["status"] == "not_configured"


def test_health_db_and_metrics(client, user_headers):
    assert client.get(f"{API}/health/db").json()["data"]["status"] == "healthy"

    client.post(f"{API}/auth/register", json={}, headers=user_headers)
    counts = client.get(f"{API}/health/metrics").json()["data"]["counts"]
    assert counts["profiles"] == 1
    assert counts["meditation_sessions"] == 0


def test_root(client):
    resp = client.get("/")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
