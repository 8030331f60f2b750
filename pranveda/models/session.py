# pranveda/models/session.py
import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


class ActivitySessionBase(SQLModel):
    """
    Columns shared by meditation and workout session records.

    Lifecycle:
      - created on "start" with status "in_progress"
      - finalized on "complete" (status "completed", completed_at set)
      - immutable once completed, except for rating/feedback
    """

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: str = Field(
        foreign_key="profiles.user_id",
        index=True,
    )

    # Catalog content id, e.g. "breathing-basics" or "beginner-cardio"
    content_id: str = Field(index=True, max_length=100)

    status: str = Field(
        default="in_progress",
        index=True,
        description="in_progress | completed",
    )

    expected_duration: int | None = Field(default=None, description="Minutes")
    duration_minutes: int | None = Field(default=None)
    # Resume position in seconds
    progress_seconds: int = Field(default=0)

    started_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
    )
    completed_at: datetime | None = Field(default=None, index=True)
    # Set once the completion celebration has been recorded
    celebration_triggered: bool = Field(default=False)

    notes: str | None = Field(default=None, max_length=500)
    rating: int | None = Field(default=None)
    feedback: str | None = Field(default=None, max_length=500)


class MeditationSession(ActivitySessionBase, table=True):
    __tablename__ = "meditation_sessions"

    mood_before: int | None = Field(default=None)
    mood_after: int | None = Field(default=None)


class WorkoutSession(ActivitySessionBase, table=True):
    __tablename__ = "workout_sessions"

    reps_completed: int | None = Field(default=None)
    calories_burned: int | None = Field(default=None)
    difficulty_rating: int | None = Field(default=None)
