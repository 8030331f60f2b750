# pranveda/schemas/ai.py
import uuid
from datetime import date, datetime
from typing import Literal

from pydantic import ConfigDict, field_validator
from sqlmodel import SQLModel, Field

Mood = Literal["very_negative", "negative", "neutral", "positive", "very_positive"]
MoodTrend = Literal["improving", "stable", "declining"]
ReportFormat = Literal["json", "pdf"]


def _require_text(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("text cannot be empty")
    return v


# ----- Requests -----


class MoodAnalysisRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    text: str = Field(min_length=1, max_length=1000)
    # ISO 639-1 code; not limited to the profile languages
    language: str = Field(default="en", min_length=2, max_length=2)

    @field_validator("text")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


class RecommendationRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    mood: Mood
    context: str | None = Field(default=None, max_length=500)


class ChatRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    message: str = Field(min_length=1, max_length=1000)
    conversation_id: uuid.UUID | None = None

    @field_validator("message")
    @classmethod
    def not_blank(cls, v: str) -> str:
        return _require_text(v)


# ----- LLM results (validated against the model's JSON reply) -----


class MoodAnalysis(SQLModel):
    mood: Mood
    sentiment_score: float = Field(ge=-1, le=1)
    emotions: list[str] = []
    confidence: float = Field(default=0.5, ge=0, le=1)
    suggestions: list[str] = []
    recommended_activities: list[str] = []


class Recommendation(SQLModel):
    meditation_sessions: list[str] = []
    workout_routines: list[str] = []
    wellness_tips: list[str] = []
    priority: Literal["low", "medium", "high"] = "medium"
    reasoning: str = ""


class ChatReply(SQLModel):
    message: str
    suggestions: list[str] = []
    follow_up_questions: list[str] = []
    mood_detected: Mood | None = None
    action_items: list[str] = []


class WeeklyInsights(SQLModel):
    summary: str
    achievements: list[str] = []
    insights: list[str] = []
    recommendations: list[str] = []
    mood_trend: MoodTrend = "stable"
    next_week_focus: str = ""


# ----- Responses -----


class ChatRead(ChatReply):
    conversation_id: uuid.UUID


class WeeklyInsightsRead(WeeklyInsights):
    week_start: date
    week_end: date


class CapabilitiesRead(SQLModel):
    available: bool
    model: str | None
    features: list[str]
    supported_languages: list[str]
    max_text_length: int
    rate_limit: dict[str, int]
    generated_at: datetime
