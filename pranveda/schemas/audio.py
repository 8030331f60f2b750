# pranveda/schemas/audio.py
import uuid
from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

AudioType = Literal["meditation", "ambient", "celebration", "workout"]
FeedbackType = Literal["play", "pause", "stop", "skip", "like", "dislike"]


class AudioTrack(SQLModel):
    id: str
    title: str
    type: AudioType
    category: str
    duration_seconds: int
    path: str
    url: str


class AudioCategory(SQLModel):
    id: AudioType
    name: str
    description: str
    count: int


class AudioFeedbackCreate(SQLModel):
    model_config = ConfigDict(extra="forbid")

    audio_type: AudioType
    file_path: str = Field(min_length=1, max_length=500)
    feedback_type: FeedbackType
    duration_seconds: int | None = Field(default=None, ge=0)
    volume_level: int | None = Field(default=None, ge=0, le=100)

    @field_validator("file_path")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("file_path cannot be empty")
        return v


class AudioFeedbackRead(SQLModel):
    id: uuid.UUID
    user_id: str
    audio_type: str
    file_path: str
    feedback_type: FeedbackType
    duration_seconds: int | None
    volume_level: int | None
    created_at: datetime
