"""
Auth flow: registration, profile provisioning, preferences, account
deletion, password reset and admin endpoints.
"""
from datetime import timedelta

from sqlmodel import select

from pranveda.core import email_client
from pranveda.core.errors import ProviderError, StoreError
from pranveda.core.timeutils import utcnow
from pranveda.models.activity_log import PasswordResetToken
from pranveda.models.profile import Profile
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.services.auth_service import PENDING_PROFILE_CLAIM

API = "/api/v1"


def test_register_requires_token(client):
    resp = client.post(f"{API}/auth/register", json={})
    assert resp.status_code == 401
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "AuthenticationError"


def test_invalid_token_is_rejected(client):
    resp = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer nope"})
    assert resp.status_code == 401
    assert resp.json()["error"] == "AuthenticationError"
    assert resp.json()["message"] == "Invalid or expired token"


def test_register_is_idempotent(client, user_headers, db_session):
    first = client.post(
        f"{API}/auth/register",
        json={"display_name": "  Asha  ", "wellness_goals": ["sleep", " sleep ", "focus"]},
        headers=user_headers,
    )
    assert first.status_code == 201
    data = first.json()["data"]
    assert data["created"] is True
    assert data["profile"]["display_name"] == "Asha"
    assert data["profile"]["wellness_goals"] == ["sleep", "focus"]

    second = client.post(
        f"{API}/auth/register",
        json={"display_name": "Someone Else"},
        headers=user_headers,
    )
    assert second.status_code == 200
    again = second.json()["data"]
    assert again["created"] is False
    assert again["profile"]["id"] == data["profile"]["id"]
    assert again["profile"]["display_name"] == "Asha"

    rows = db_session.exec(select(Profile).where(Profile.user_id == "user-a")).all()
    assert len(rows) == 1


def test_register_rejects_unknown_fields(client, user_headers):
    resp = client.post(f"{API}/auth/register", json={"role": "admin"}, headers=user_headers)
    assert resp.status_code == 422
    assert resp.json()["error"] == "ValidationError"


def test_me_reports_missing_profile(client, user_headers):
    resp = client.get(f"{API}/auth/me", headers=user_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["user"]["uid"] == "user-a"
    assert data["profile"] is None
    assert data["profile_complete"] is False


def test_preferences_round_trip(client, user_headers):
    client.post(f"{API}/auth/register", json={}, headers=user_headers)
    resp = client.put(
        f"{API}/auth/preferences",
        json={
            "preferred_language": "hi",
            "experience_level": "intermediate",
            "notifications": {"weekly_reports": True},
            "privacy": {"leaderboard_participation": False},
        },
        headers=user_headers,
    )
    assert resp.status_code == 200

    profile = client.get(f"{API}/auth/me", headers=user_headers).json()["data"]["profile"]
    assert profile["preferred_language"] == "hi"
    assert profile["experience_level"] == "intermediate"
    assert profile["notifications"]["weekly_reports"] is True
    # untouched keys keep their defaults
    assert profile["notifications"]["email_notifications"] is True
    assert profile["privacy"]["leaderboard_participation"] is False
    assert profile["privacy"]["profile_visibility"] == "public"


def test_preferences_without_profile_is_404(client, user_headers):
    resp = client.put(f"{API}/auth/preferences", json={"bio": "hi"}, headers=user_headers)
    assert resp.status_code == 404


def test_preferences_reject_bad_language(client, user_headers):
    client.post(f"{API}/auth/register", json={}, headers=user_headers)
    resp = client.put(f"{API}/auth/preferences", json={"preferred_language": "xx"}, headers=user_headers)
    assert resp.status_code == 422
    assert any(d["field"] == "preferred_language" for d in resp.json()["details"])


def test_signup_creates_identity_and_profile(client, identity):
    resp = client.post(
        f"{API}/auth/signup",
        json={"email": "new@example.com", "password": "longenough", "display_name": "Nova"},
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["profile_pending"] is False
    assert data["profile"]["display_name"] == "Nova"
    assert identity.get_user_by_email("new@example.com").uid == data["user"]["uid"]


def test_signup_duplicate_email_is_conflict(client, identity):
    identity.add_user("existing", email="taken@example.com")
    resp = client.post(f"{API}/auth/signup", json={"email": "taken@example.com", "password": "longenough"})
    assert resp.status_code == 409


def test_signup_marks_pending_profile_and_repairs_it(client, identity, db_session, monkeypatch):
    original_create = ProfileRepository.create

    def failing_create(self, session, profile):
        raise StoreError("Failed to persist Profile", details="connection reset")

    monkeypatch.setattr(ProfileRepository, "create", failing_create)
    resp = client.post(f"{API}/auth/signup", json={"email": "flaky@example.com", "password": "longenough"})
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["profile_pending"] is True
    assert data["profile"] is None

    uid = data["user"]["uid"]
    assert identity.users[uid].claims[PENDING_PROFILE_CLAIM] is True
    assert db_session.exec(select(Profile).where(Profile.user_id == uid)).first() is None

    monkeypatch.setattr(ProfileRepository, "create", original_create)
    resp = client.get(f"{API}/wellness/progress/streaks", headers={"Authorization": f"Bearer token-{uid}"})
    assert resp.status_code == 200
    assert PENDING_PROFILE_CLAIM not in identity.users[uid].claims
    assert db_session.exec(select(Profile).where(Profile.user_id == uid)).one().email == "flaky@example.com"


def test_profile_is_repaired_on_first_request(client, identity, db_session):
    token = identity.add_user("half-made", claims={PENDING_PROFILE_CLAIM: True})
    resp = client.get(f"{API}/auth/stats", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200

    profile = db_session.exec(select(Profile).where(Profile.user_id == "half-made")).one()
    assert profile.display_name == "half-made"
    assert PENDING_PROFILE_CLAIM not in identity.users["half-made"].claims


def test_verify_token_and_refresh(client, user_headers):
    resp = client.post(f"{API}/auth/verify-token", headers=user_headers)
    assert resp.json()["data"]["valid"] is True
    assert resp.json()["data"]["profile_exists"] is False

    resp = client.post(f"{API}/auth/refresh", headers=user_headers)
    assert resp.json()["data"]["custom_token"] == "custom-user-a"


def test_check_user(client, identity):
    identity.add_user("someone", email="someone@example.com")
    assert client.get(f"{API}/auth/check-user", params={"email": "someone@example.com"}).json()["data"]["exists"]
    assert not client.get(f"{API}/auth/check-user", params={"email": "ghost@example.com"}).json()["data"]["exists"]


def test_delete_account_requires_password(client, user_headers):
    client.post(f"{API}/auth/register", json={}, headers=user_headers)

    resp = client.request("DELETE", f"{API}/auth/account", json={"password": "wrong"}, headers=user_headers)
    assert resp.status_code == 401

    resp = client.request("DELETE", f"{API}/auth/account", json={"password": "correct-horse"}, headers=user_headers)
    assert resp.status_code == 200

    # soft-deleted profiles are locked out
    resp = client.get(f"{API}/wellness/progress/streaks", headers=user_headers)
    assert resp.status_code == 403
    resp = client.post(f"{API}/auth/register", json={}, headers=user_headers)
    assert resp.status_code == 403


def test_forgot_and_reset_password(client, identity, db_session, monkeypatch):
    identity.add_user("forgetful", email="forgetful@example.com")
    sent = []
    monkeypatch.setattr(
        email_client,
        "send_password_reset_email",
        lambda to, link, ttl: sent.append((to, link)) or True,
    )

    unknown = client.post(f"{API}/auth/forgot-password", json={"email": "ghost@example.com"})
    known = client.post(f"{API}/auth/forgot-password", json={"email": "forgetful@example.com"})
    assert unknown.status_code == known.status_code == 200
    assert unknown.json()["message"] == known.json()["message"]
    assert len(sent) == 1

    token = db_session.exec(select(PasswordResetToken)).one().token
    assert len(token) == 64
    assert token in sent[0][1]

    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
    assert resp.status_code == 200
    assert identity.verify_password("forgetful@example.com", "brand-new-pass")

    # single use
    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "another-pass"})
    assert resp.status_code == 422
    assert resp.json()["details"][0]["field"] == "token"


def test_reset_token_is_spent_even_if_password_update_fails(client, identity, db_session, monkeypatch):
    identity.add_user("unlucky", email="unlucky@example.com")
    token = "b" * 64
    db_session.add(PasswordResetToken(user_id="unlucky", token=token, expires_at=utcnow() + timedelta(minutes=30)))
    db_session.commit()

    def provider_down(uid, password):
        raise ProviderError("Identity provider request failed")

    monkeypatch.setattr(identity, "update_password", provider_down)
    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "first-pass-1"})
    assert resp.status_code == 502

    monkeypatch.undo()
    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "second-pass-2"})
    assert resp.status_code == 422
    assert identity.verify_password("unlucky@example.com", "correct-horse")


def test_reset_token_can_only_be_consumed_once(db_session):
    repo = ActivityLogRepository()
    now = utcnow()
    repo.add_reset_token(db_session, PasswordResetToken(user_id="u", token="c" * 64, expires_at=now + timedelta(minutes=5)))

    first = repo.consume_reset_token(db_session, "c" * 64, now)
    assert first is not None and first.used is True
    assert repo.consume_reset_token(db_session, "c" * 64, now) is None
    assert repo.consume_reset_token(db_session, "unknown", now) is None


def test_expired_reset_token_is_rejected(client, identity, db_session):
    identity.add_user("late", email="late@example.com")
    token = "a" * 64
    db_session.add(PasswordResetToken(user_id="late", token=token, expires_at=utcnow() - timedelta(minutes=1)))
    db_session.commit()

    resp = client.post(f"{API}/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
    assert resp.status_code == 422


def test_admin_routes_require_admin(client, user_headers):
    resp = client.get(f"{API}/auth/admin/users", headers=user_headers)
    assert resp.status_code == 403


def test_admin_can_list_and_delete_users(client, identity, admin_headers, user_headers, db_session):
    client.post(f"{API}/auth/register", json={}, headers=user_headers)

    resp = client.get(f"{API}/auth/admin/users", params={"page_size": 1}, headers=admin_headers)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert len(data["users"]) == 1
    assert data["next_page_token"] == "1"

    resp = client.put(
        f"{API}/auth/admin/users/user-a/claims",
        json={"claims": {"beta": True}},
        headers=admin_headers,
    )
    assert resp.status_code == 200

    resp = client.delete(f"{API}/auth/admin/users/user-a", headers=admin_headers)
    assert resp.status_code == 200
    assert "user-a" in identity.deleted
    profile = db_session.exec(select(Profile).where(Profile.user_id == "user-a")).one()
    assert profile.deleted_at is not None
