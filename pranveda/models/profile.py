# pranveda/models/profile.py
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import JSON, Column
from sqlmodel import SQLModel, Field


def default_notifications() -> dict[str, bool]:
    return {
        "email_notifications": True,
        "push_notifications": True,
        "meditation_reminders": True,
        "workout_reminders": True,
        "achievement_notifications": True,
        "weekly_reports": False,
        "marketing_emails": False,
    }


def default_privacy() -> dict[str, Any]:
    return {
        "profile_visibility": "public",
        "data_sharing": False,
        "analytics_sharing": True,
        "leaderboard_participation": True,
    }


class Profile(SQLModel, table=True):
    """
    Application-level user record for PranVeda.

    Identity:
      - user_id: MUST match the Firebase Auth uid (token "uid" claim)

    Role:
      - "user" | "admin"

    Passwords and credentials live in Firebase Auth only. Profiles are
    never hard-deleted; account deletion sets `deleted_at`.
    """

    __tablename__ = "profiles"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        index=True,
    )

    user_id: str = Field(
        unique=True,
        index=True,
        max_length=128,
        description="Firebase Auth uid",
    )

    email: str | None = Field(
        default=None,
        unique=True,
        index=True,
        description="Email from the identity provider",
    )

    display_name: str | None = Field(default=None, max_length=50)
    avatar_url: str | None = Field(default=None)
    bio: str | None = Field(default=None, max_length=500)

    preferred_language: str = Field(default="en", max_length=2)
    experience_level: str = Field(
        default="beginner",
        description="beginner | intermediate | advanced",
    )
    wellness_goals: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )
    notifications: dict[str, Any] = Field(
        default_factory=default_notifications,
        sa_column=Column(JSON, nullable=False),
    )
    privacy: dict[str, Any] = Field(
        default_factory=default_privacy,
        sa_column=Column(JSON, nullable=False),
    )

    # Application role (not Firebase custom claims)
    role: str = Field(
        default="user",
        index=True,
        description="Application role: user | admin",
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
    )
    deleted_at: datetime | None = Field(
        default=None,
        description="Soft-delete marker",
    )
