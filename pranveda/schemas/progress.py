# pranveda/schemas/progress.py
import uuid
from datetime import date, datetime
from typing import Any, Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

GoalStatus = Literal["active", "completed", "paused", "cancelled"]
GoalCategory = Literal["meditation", "workout", "mood", "general"]
HistoryType = Literal["meditation", "workout", "mood"]
AnalyticsMetric = Literal["all", "minutes", "sessions", "mood"]


class MoodCheckinCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    mood_rating: int = Field(ge=1, le=5)
    energy_level: int | None = Field(default=None, ge=1, le=5)
    stress_level: int | None = Field(default=None, ge=1, le=5)
    sleep_quality: int | None = Field(default=None, ge=1, le=5)
    notes: str | None = Field(default=None, max_length=500)
    tags: list[str] = Field(default_factory=list, max_length=5)

    @field_validator("tags")
    @classmethod
    def normalize_tags(cls, v: list[str]) -> list[str]:
        cleaned = []
        for tag in v:
            tag = tag.strip().lower()
            if not tag:
                raise ValueError("tags cannot be empty")
            if len(tag) > 30:
                raise ValueError("tags must be at most 30 characters")
            cleaned.append(tag)
        return cleaned


class MoodCheckinRead(SQLModel):
    id: uuid.UUID
    user_id: str
    mood_rating: int
    energy_level: int | None
    stress_level: int | None
    sleep_quality: int | None
    notes: str | None
    tags: list[str]
    created_at: datetime


class GoalCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1, max_length=100)
    category: GoalCategory = "general"
    target_value: float = Field(gt=0)
    current_value: float = Field(default=0, ge=0)
    unit: str = Field(default="sessions", min_length=1, max_length=30)
    target_date: date | None = None

    @field_validator("title")
    @classmethod
    def normalize_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty")
        return v


class GoalUpdate(SQLModel):
    """Only progress and status are mutable after creation."""

    model_config = ConfigDict(extra="forbid")

    current_value: float | None = Field(default=None, ge=0)
    status: GoalStatus | None = None


class GoalRead(SQLModel):
    id: uuid.UUID
    user_id: str
    title: str
    category: str
    target_value: float
    current_value: float
    unit: str
    status: GoalStatus
    target_date: date | None
    created_at: datetime
    updated_at: datetime


class StreakRead(SQLModel):
    current: int
    longest: int
    last_activity_date: date | None
    next_milestone: int | None


class StreaksRead(SQLModel):
    meditation: StreakRead
    workout: StreakRead
    mood_checkin: StreakRead
    overall: StreakRead


class HistoryEntry(SQLModel):
    id: uuid.UUID
    type: HistoryType
    occurred_at: datetime
    content_id: str | None = None
    duration_minutes: int | None = None
    mood_rating: int | None = None
    details: dict[str, Any] = {}


class ProgressStatsRead(SQLModel):
    period: str
    meditation_sessions: int
    workout_sessions: int
    total_sessions: int
    meditation_minutes: int
    workout_minutes: int
    total_minutes: int
    mood_checkins: int
    average_mood: float | None
    active_goals: int
    completed_goals: int
    streaks: StreaksRead


class DailyMood(SQLModel):
    date: date
    average_mood: float
    checkins: int


class DailyActivity(SQLModel):
    date: date
    meditation_minutes: int
    workout_minutes: int
    sessions: int


class AnalyticsRead(SQLModel):
    period: str
    metric: AnalyticsMetric
    activity: list[DailyActivity] = []
    mood_trend: list[DailyMood] = []
    mood_direction: Literal["improving", "stable", "declining"] | None = None
