# pranveda/models/activity_log.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class AudioFeedback(SQLModel, table=True):
    """Append-only playback event for an audio asset."""

    __tablename__ = "audio_feedback"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    audio_type: str = Field(max_length=50)
    file_path: str = Field(max_length=500)
    feedback_type: str = Field(description="play | pause | stop | skip | like | dislike")
    duration_seconds: int | None = Field(default=None)
    volume_level: int | None = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AIInteraction(SQLModel, table=True):
    """Record of one LLM round-trip."""

    __tablename__ = "ai_interactions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    interaction_type: str = Field(max_length=50)
    input_text: str
    ai_response: str
    sentiment_score: float | None = Field(default=None)
    processing_time_ms: int = Field(default=0)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class PasswordResetToken(SQLModel, table=True):
    """Single-use, time-bounded password reset token."""

    __tablename__ = "password_reset_tokens"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(index=True)
    token: str = Field(unique=True, index=True, max_length=128)
    expires_at: datetime
    used: bool = Field(default=False)
    used_at: datetime | None = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
