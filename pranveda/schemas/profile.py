# pranveda/schemas/profile.py
import uuid
from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, EmailStr, HttpUrl, field_validator
from sqlmodel import SQLModel, Field

Language = Literal["en", "es", "fr", "de", "hi"]
ExperienceLevel = Literal["beginner", "intermediate", "advanced"]
ProfileVisibility = Literal["public", "private", "friends"]
Role = Literal["user", "admin"]


def _normalize_display_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("display_name cannot be empty")
    return v


def _normalize_goals(v: list[str] | None) -> list[str] | None:
    if v is None:
        return v
    cleaned: list[str] = []
    for tag in v:
        tag = tag.strip()
        if not tag:
            raise ValueError("wellness goals cannot be empty")
        if len(tag) > 50:
            raise ValueError("wellness goals must be at most 50 characters")
        if tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class NotificationSettingsUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email_notifications: bool | None = None
    push_notifications: bool | None = None
    meditation_reminders: bool | None = None
    workout_reminders: bool | None = None
    achievement_notifications: bool | None = None
    weekly_reports: bool | None = None
    marketing_emails: bool | None = None


class PrivacySettingsUpdate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    profile_visibility: ProfileVisibility | None = None
    data_sharing: bool | None = None
    analytics_sharing: bool | None = None
    leaderboard_participation: bool | None = None


class ProfileFields(SQLModel):
    """
    Editable profile fields shared by registration and preference updates.

    Validation rules:
      - display_name: 1..50 chars after trimming
      - bio: up to 500 chars
      - wellness_goals: at most 10 distinct tags
    """

    model_config = ConfigDict(extra="forbid")

    display_name: str | None = Field(default=None, max_length=50)
    avatar_url: HttpUrl | None = None
    bio: str | None = Field(default=None, max_length=500)
    preferred_language: Language | None = None
    wellness_goals: list[str] | None = Field(default=None, max_length=10)
    experience_level: ExperienceLevel | None = None

    @field_validator("display_name")
    @classmethod
    def normalize_display_name(cls, v: str | None) -> str | None:
        return _normalize_display_name(v)

    @field_validator("wellness_goals")
    @classmethod
    def normalize_goals(cls, v: list[str] | None) -> list[str] | None:
        return _normalize_goals(v)


class RegisterRequest(ProfileFields):
    """
    Payload for POST /auth/register.

    Email and password never travel here: the identity comes from the
    verified token.
    """


class PreferencesUpdate(ProfileFields):
    """Partial update for PUT /auth/preferences."""

    notifications: NotificationSettingsUpdate | None = None
    privacy: PrivacySettingsUpdate | None = None


class SignupRequest(SQLModel):
    """Server-side account creation (identity + profile)."""

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=8, max_length=100)
    display_name: str | None = Field(default=None, max_length=50)

    @field_validator("display_name")
    @classmethod
    def normalize_display_name(cls, v: str | None) -> str | None:
        return _normalize_display_name(v)


class ProfileRead(SQLModel):
    """Response schema returned to clients."""

    id: uuid.UUID
    user_id: str
    email: str | None
    display_name: str | None
    avatar_url: str | None
    bio: str | None
    preferred_language: str
    wellness_goals: list[str]
    experience_level: str
    notifications: dict[str, Any]
    privacy: dict[str, Any]
    role: Role
    created_at: datetime
    updated_at: datetime


class IdentityRead(SQLModel):
    uid: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None


class MeRead(SQLModel):
    user: IdentityRead
    profile: ProfileRead | None
    profile_complete: bool


class RegisterRead(SQLModel):
    profile: ProfileRead
    created: bool


class SignupRead(SQLModel):
    user: IdentityRead
    profile: ProfileRead | None
    profile_pending: bool


class TokenVerifyRead(SQLModel):
    valid: bool
    uid: str
    email: str | None
    email_verified: bool
    profile_exists: bool


class RefreshRead(SQLModel):
    custom_token: str


class SessionInfoRead(SQLModel):
    uid: str
    email: str | None
    email_verified: bool
    created_at: datetime | None
    last_sign_in_at: datetime | None


class UserStatsRead(SQLModel):
    meditation_sessions: int
    workout_sessions: int
    total_minutes: int
    meditation_streak: int
    workout_streak: int
    achievements: int
    points: int
    level: int
    member_since: datetime


class CheckUserRead(SQLModel):
    email: str
    exists: bool


class DeleteAccountRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    password: str = Field(min_length=1, max_length=100)


class ForgotPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    email: EmailStr


class ResetPasswordRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    token: str = Field(min_length=32, max_length=128)
    new_password: str = Field(min_length=8, max_length=100)


class ClaimsUpdate(SQLModel):
    """Admin payload replacing a user's custom claims."""

    model_config = ConfigDict(extra="forbid")

    claims: dict[str, Any]

    @field_validator("claims")
    @classmethod
    def limit_size(cls, v: dict[str, Any]) -> dict[str, Any]:
        if len(v) > 20:
            raise ValueError("at most 20 custom claims are allowed")
        return v


class UserListRead(SQLModel):
    users: list[IdentityRead]
    next_page_token: str | None
