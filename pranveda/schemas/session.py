# pranveda/schemas/session.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

from pranveda.schemas.gamification import CelebrationRead

Difficulty = Literal["beginner", "intermediate", "advanced"]
SessionStatus = Literal["in_progress", "completed"]


def _strip_optional(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    return v or None


# ----- Catalog -----


class MeditationContent(SQLModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: Difficulty
    duration: int  # minutes
    audio_path: str
    audio_url: str | None = None
    techniques: list[str] = []


class Exercise(SQLModel):
    id: str
    name: str
    sets: int
    reps: int | None = None
    duration_seconds: int | None = None
    rest_seconds: int = 30
    instructions: str


class WorkoutRoutine(SQLModel):
    id: str
    title: str
    description: str
    category: str
    difficulty: Difficulty
    duration: int  # minutes
    calories_estimate: int
    exercises: list[Exercise]


class CatalogCategory(SQLModel):
    id: str
    name: str
    description: str


class Technique(SQLModel):
    id: str
    name: str
    category: str
    description: str
    steps: list[str]


# ----- Lifecycle payloads -----


class MeditationStart(SQLModel):
    model_config = ConfigDict(extra="forbid")

    expected_duration: int | None = Field(default=None, ge=1, le=480)


class WorkoutStart(SQLModel):
    model_config = ConfigDict(extra="forbid")

    expected_duration: int | None = Field(default=None, ge=1, le=180)


class MeditationComplete(SQLModel):
    """
    Metrics recorded when a meditation session finishes.

    Missing duration is derived from the expected duration or the elapsed
    time since start.
    """

    model_config = ConfigDict(extra="forbid")

    duration_minutes: int | None = Field(default=None, ge=1, le=480)
    notes: str | None = Field(default=None, max_length=500)
    mood_before: int | None = Field(default=None, ge=1, le=5)
    mood_after: int | None = Field(default=None, ge=1, le=5)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class WorkoutComplete(SQLModel):
    model_config = ConfigDict(extra="forbid")

    duration_minutes: int | None = Field(default=None, ge=1, le=180)
    reps_completed: int | None = Field(default=None, ge=0)
    calories_burned: int | None = Field(default=None, ge=0)
    difficulty_rating: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = Field(default=None, max_length=500)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class ProgressSave(SQLModel):
    """Resumable playback position, in seconds from the start."""

    model_config = ConfigDict(extra="forbid")

    current_time: int = Field(ge=0)
    notes: str | None = Field(default=None, max_length=200)

    @field_validator("notes")
    @classmethod
    def normalize_notes(cls, v: str | None) -> str | None:
        return _strip_optional(v)


class SessionRating(SQLModel):
    model_config = ConfigDict(extra="forbid")

    rating: int = Field(ge=1, le=5)
    feedback: str | None = Field(default=None, max_length=500)

    @field_validator("feedback")
    @classmethod
    def normalize_feedback(cls, v: str | None) -> str | None:
        return _strip_optional(v)


# ----- Read models -----


class ActivitySessionRead(SQLModel):
    id: uuid.UUID
    user_id: str
    content_id: str
    status: SessionStatus
    expected_duration: int | None
    duration_minutes: int | None
    progress_seconds: int
    started_at: datetime
    completed_at: datetime | None
    celebration_triggered: bool
    notes: str | None
    rating: int | None
    feedback: str | None


class MeditationSessionRead(ActivitySessionRead):
    mood_before: int | None
    mood_after: int | None


class WorkoutSessionRead(ActivitySessionRead):
    reps_completed: int | None
    calories_burned: int | None
    difficulty_rating: int | None


class MeditationCompletionRead(SQLModel):
    session: MeditationSessionRead
    celebration: CelebrationRead


class WorkoutCompletionRead(SQLModel):
    session: WorkoutSessionRead
    celebration: CelebrationRead


class ActivityStatsRead(SQLModel):
    period: str
    total_sessions: int
    total_minutes: int
    average_duration: float
    average_rating: float | None
    current_streak: int
    longest_streak: int
    favorite_content: str | None
    # meditation only
    average_mood_improvement: float | None = None
    # workout only
    total_calories: int | None = None
