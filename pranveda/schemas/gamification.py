# pranveda/schemas/gamification.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel, Field

from pranveda.core.timeutils import Period

EventType = Literal[
    "meditation_complete",
    "workout_complete",
    "streak_milestone",
    "badge_unlock",
    "level_up",
]
LeaderboardCategory = Literal["overall", "meditation", "workout", "streaks"]


class MilestoneTrigger(SQLModel):
    """
    Payload for POST /wellness/gamification/milestone.

    `data` may carry message parameters (days, badge_name, level) and a
    `badge_unlocked` badge type to unlock alongside the celebration.
    """

    model_config = ConfigDict(extra="forbid")

    event_type: EventType
    data: dict[str, Any] | None = None


class CelebrationRead(SQLModel):
    id: uuid.UUID
    user_id: str
    event_type: EventType
    audio_file: str
    animation_type: str
    score_increment: int
    badge_unlocked: str | None
    message: str
    data: dict[str, Any]
    viewed: bool
    viewed_at: datetime | None
    created_at: datetime


class BadgeRead(SQLModel):
    badge_type: str
    badge_name: str
    badge_description: str | None
    points_awarded: int
    unlocked: bool
    unlocked_at: datetime | None = None


class LevelRead(SQLModel):
    level: int
    total_points: int
    current_level_points: int
    next_level_points: int
    progress_percentage: float


class RewardRead(SQLModel):
    id: str
    title: str
    description: str
    points_required: int
    unlocked: bool


class LeaderboardEntry(SQLModel):
    rank: int
    user_id: str
    display_name: str | None
    avatar_url: str | None
    score: int


class LeaderboardRead(SQLModel):
    category: LeaderboardCategory
    period: Period
    entries: list[LeaderboardEntry]
    total_participants: int


class RankingRead(SQLModel):
    category: LeaderboardCategory
    period: Period
    rank: int | None
    score: int
    total_participants: int
    percentile: float | None = Field(default=None, description="Share of participants at or below the caller")
