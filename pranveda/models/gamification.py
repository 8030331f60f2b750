# pranveda/models/gamification.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import SQLModel, Field


class CelebrationEvent(SQLModel, table=True):
    """
    A celebration shown once to the user.

    Created by exactly one triggering event (a session completion or a
    milestone call). `viewed` flips false -> true at most once.
    """

    __tablename__ = "celebration_events"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    event_type: str = Field(
        index=True,
        description="meditation_complete | workout_complete | streak_milestone | badge_unlock | level_up",
    )
    audio_file: str
    animation_type: str
    score_increment: int = Field(default=0)
    badge_unlocked: str | None = Field(default=None)
    message: str
    data: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    viewed: bool = Field(default=False, index=True)
    viewed_at: datetime | None = Field(default=None)

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )


class UserAchievement(SQLModel, table=True):
    """
    An unlocked badge. A badge can be unlocked once per user.
    """

    __tablename__ = "user_achievements"
    __table_args__ = (UniqueConstraint("user_id", "badge_type", name="uq_user_badge"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    badge_type: str = Field(max_length=50)
    badge_name: str = Field(max_length=100)
    badge_description: str | None = Field(default=None)
    points_awarded: int = Field(default=0)

    unlocked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
