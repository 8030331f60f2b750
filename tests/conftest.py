"""
Pytest configuration and fixtures

Every test gets a fresh in-memory SQLite database and fake adapters:
  - FakeIdentity maps bearer tokens to users (no Firebase calls)
  - FakeLLM returns canned JSON and counts calls (no Gemini calls)
  - FakeRedis holds rate-limit counters (no Redis server)

The app lifespan is never entered (TestClient is used without a context
manager), so nothing reaches the network.
"""
import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ["RATE_LIMIT_ENABLED"] = "false"

from datetime import datetime, timezone
from typing import Any

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from pranveda.core.errors import ConflictError, InvalidToken, UserNotFound
from pranveda.core.identity import IdentityUser, get_identity_provider
from pranveda.core.llm import get_llm_client, get_optional_llm_client
from pranveda.core.storage_utils import AudioStorage, get_audio_storage
from pranveda.database import build_engine, get_session
from pranveda.main import app


class FakeIdentity:
    """In-memory stand-in for the Firebase identity provider."""

    def __init__(self):
        self.users: dict[str, IdentityUser] = {}
        self.tokens: dict[str, str] = {}
        self.passwords: dict[str, str] = {}
        self.deleted: list[str] = []

    def add_user(
        self,
        uid: str,
        email: str | None = None,
        name: str | None = None,
        password: str = "correct-horse",
        claims: dict[str, Any] | None = None,
    ) -> str:
        email = email or f"{uid}@example.com"
        self.users[uid] = IdentityUser(
            uid=uid,
            email=email,
            email_verified=True,
            name=name,
            claims=claims or {},
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )
        self.passwords[email] = password
        token = f"token-{uid}"
        self.tokens[token] = uid
        return token

    def verify_token(self, token: str) -> IdentityUser:
        uid = self.tokens.get(token)
        if uid is None or uid not in self.users:
            raise InvalidToken()
        return self.users[uid]

    def create_custom_token(self, uid: str, claims: dict[str, Any] | None = None) -> str:
        return f"custom-{uid}"

    def get_user(self, uid: str) -> IdentityUser:
        if uid not in self.users:
            raise UserNotFound()
        return self.users[uid]

    def get_user_by_email(self, email: str) -> IdentityUser:
        for user in self.users.values():
            if user.email == email:
                return user
        raise UserNotFound()

    def create_user(self, email: str, password: str, display_name: str | None = None) -> IdentityUser:
        if any(u.email == email for u in self.users.values()):
            raise ConflictError("An account with this email already exists")
        uid = f"uid-{len(self.users) + 1}"
        self.add_user(uid, email=email, name=display_name, password=password)
        return self.users[uid]

    def delete_user(self, uid: str) -> None:
        if uid not in self.users:
            raise UserNotFound()
        del self.users[uid]
        self.deleted.append(uid)

    def update_claims(self, uid: str, claims: dict[str, Any] | None) -> None:
        user = self.get_user(uid)
        self.users[uid] = user.model_copy(update={"claims": dict(claims or {})})

    def update_password(self, uid: str, password: str) -> None:
        user = self.get_user(uid)
        self.passwords[user.email] = password

    def list_users(self, page_size: int = 100, page_token: str | None = None):
        users = sorted(self.users.values(), key=lambda u: u.uid)
        start = int(page_token or 0)
        next_token = str(start + page_size) if start + page_size < len(users) else None
        return users[start : start + page_size], next_token

    def verify_password(self, email: str, password: str) -> bool:
        return self.passwords.get(email) == password


class FakeRedis:
    """Minimal in-memory Redis for the rate limiter (INCR, EXPIRE, pipelines)."""

    def __init__(self):
        self.store: dict[str, int] = {}
        self.ttls: dict[str, int] = {}

    def incr(self, key):
        self.store[key] = self.store.get(key, 0) + 1
        return self.store[key]

    def expire(self, key, ttl):
        self.ttls[key] = ttl
        return True

    def pipeline(self):
        return FakePipeline(self)

    def ping(self):
        return True


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.calls = []

    def incr(self, key):
        self.calls.append(("incr", (key,)))

    def expire(self, key, ttl):
        self.calls.append(("expire", (key, ttl)))

    def execute(self):
        return [getattr(self.redis, name)(*args) for name, args in self.calls]


class FakeLLM:
    """Returns canned replies keyed by the first words of the prompt."""

    model = "fake-gemini"

    def __init__(self):
        self.calls: list[str] = []
        self.replies: dict[str, dict[str, Any]] = {
            "Analyze the mood": {
                "mood": "positive",
                "sentiment_score": 0.6,
                "emotions": ["calm", "hopeful"],
                "confidence": 0.8,
                "suggestions": ["Keep a gratitude journal"],
                "recommended_activities": ["breathing-basics"],
            },
            "The user currently feels": {
                "meditation_sessions": ["breathing-basics", "made-up-session"],
                "workout_routines": ["morning-yoga"],
                "wellness_tips": ["Drink water"],
                "priority": "medium",
                "reasoning": "Gentle activities suit the current mood.",
            },
            "User (": {
                "message": "That sounds like a lot. Try three slow breaths.",
                "suggestions": ["breathing-basics"],
                "follow_up_questions": ["How did you sleep?"],
                "mood_detected": "negative",
                "action_items": [],
            },
            "Weekly wellness data": {
                "summary": "A steady week.",
                "achievements": ["Meditated twice"],
                "insights": ["Mornings work best"],
                "recommendations": ["Add one workout"],
                "mood_trend": "improving",
                "next_week_focus": "Consistency",
            },
        }

    def generate_json(self, system_prompt: str, user_prompt: str):
        self.calls.append(user_prompt)
        for prefix, reply in self.replies.items():
            if user_prompt.startswith(prefix):
                return dict(reply), 12
        raise AssertionError(f"unexpected prompt: {user_prompt[:40]}")


@pytest.fixture
def engine():
    engine = build_engine("sqlite://")
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def identity():
    return FakeIdentity()


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def fake_redis(monkeypatch):
    """Rate-limit counters go to a FakeRedis instead of a server."""
    redis = FakeRedis()
    monkeypatch.setattr("pranveda.core.rate_limit.get_redis_client", lambda: redis)
    return redis


@pytest.fixture
def client(engine, identity, llm, fake_redis):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_identity_provider] = lambda: identity
    app.dependency_overrides[get_llm_client] = lambda: llm
    app.dependency_overrides[get_optional_llm_client] = lambda: llm
    app.dependency_overrides[get_audio_storage] = lambda: AudioStorage(None, "audio")
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user_headers(identity):
    token = identity.add_user("user-a", email="asha@example.com", name="Asha")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_headers(identity):
    token = identity.add_user("user-b", email="bodhi@example.com", name="Bodhi")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(identity):
    token = identity.add_user("admin-1", email="admin@example.com", claims={"role": "admin"})
    return {"Authorization": f"Bearer {token}"}
