# pranveda/models/progress.py
import uuid
from datetime import date, datetime, timezone

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


class MoodCheckin(SQLModel, table=True):
    """
    Append-only mood check-in.
    """

    __tablename__ = "mood_checkins"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    mood_rating: int = Field(description="1..5")
    energy_level: int | None = Field(default=None)
    stress_level: int | None = Field(default=None)
    sleep_quality: int | None = Field(default=None)
    notes: str | None = Field(default=None, max_length=500)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )


class UserGoal(SQLModel, table=True):
    """
    Mutable wellness goal; only `current_value` and `status` change after creation.
    """

    __tablename__ = "user_goals"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True, index=True)
    user_id: str = Field(foreign_key="profiles.user_id", index=True)

    title: str = Field(max_length=100)
    category: str = Field(default="general", description="meditation | workout | mood | general")
    target_value: float = Field(default=1)
    current_value: float = Field(default=0)
    unit: str = Field(default="sessions", max_length=30)
    status: str = Field(
        default="active",
        index=True,
        description="active | completed | paused | cancelled",
    )
    target_date: date | None = Field(default=None)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
