# pranveda/services/ai_service.py
import json
import logging
import uuid
from datetime import date
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError
from sqlmodel import Session, SQLModel

from pranveda.core.errors import ProviderError, StoreError
from pranveda.core.llm import LLMClient
from pranveda.core.rate_limit import POLICIES
from pranveda.core.timeutils import utcnow
from pranveda.models.activity_log import AIInteraction
from pranveda.models.profile import Profile
from pranveda.models.session import MeditationSession, WorkoutSession
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.repositories.progress_repo import ProgressRepository
from pranveda.repositories.session_repo import ActivitySessionRepository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.ai import (
    ChatReply,
    ChatRequest,
    MoodAnalysis,
    MoodAnalysisRequest,
    Recommendation,
    RecommendationRequest,
    WeeklyInsights,
)
from pranveda.services.catalog import MEDITATIONS, WORKOUTS
from pranveda.services.progress_service import week_window
from pranveda.services.streaks import activity_dates, calculate_streak

logger = logging.getLogger(__name__)

ResultT = TypeVar("ResultT", bound=SQLModel)

SUPPORTED_LANGUAGES = ["en", "es", "fr", "de", "hi"]
MAX_TEXT_LENGTH = 1000
FEATURES = [
    "mood_analysis",
    "recommendations",
    "chat",
    "weekly_insights",
    "reports",
]

SYSTEM_PROMPT = (
    "You are PranVeda's wellness assistant. You support users with meditation, "
    "breathing, movement and emotional wellbeing. You are warm and concise. You "
    "never diagnose medical or mental health conditions; if the user mentions "
    "self-harm or a crisis, encourage them to contact local emergency services or "
    "a crisis line. Always answer with a single JSON object matching the schema "
    "described in the request."
)

MOOD_PROMPT = """Analyze the mood expressed in the following text (language: {language}).
Return JSON with keys:
  "mood": one of very_negative, negative, neutral, positive, very_positive
  "sentiment_score": number from -1 to 1
  "emotions": list of short emotion words
  "confidence": number from 0 to 1
  "suggestions": list of up to 3 short wellbeing suggestions
  "recommended_activities": list of up to 3 activity ids from {activities}

Text:
{text}"""

RECOMMENDATION_PROMPT = """The user currently feels: {mood}.
Context: {context}
Experience level: {experience_level}. Goals: {goals}.
Meditation ids: {meditations}
Workout ids: {workouts}
Return JSON with keys:
  "meditation_sessions": list of meditation ids from the list above
  "workout_routines": list of workout ids from the list above
  "wellness_tips": list of up to 3 tips
  "priority": one of low, medium, high
  "reasoning": one or two sentences"""

CHAT_PROMPT = """User ({name}, prefers language {language}) says:
{message}
Return JSON with keys:
  "message": your reply
  "suggestions": list of up to 3 suggestions
  "follow_up_questions": list of up to 2 questions
  "mood_detected": one of very_negative, negative, neutral, positive, very_positive, or null
  "action_items": list of small concrete next steps"""

INSIGHTS_PROMPT = """Weekly wellness data from {start} to {end}:
{data}
Return JSON with keys:
  "summary": two or three sentences
  "achievements": list of highlights
  "insights": list of observations
  "recommendations": list of suggestions for next week
  "mood_trend": one of improving, stable, declining
  "next_week_focus": one sentence"""


class AIService:
    """
    LLM-backed wellness features.

    The service keeps no conversation state: chat continuity is whatever the
    client sends back as `conversation_id`. Successful LLM calls are logged to
    ai_interactions; a logging failure never fails the request.
    """

    def __init__(
        self,
        log_repo: ActivityLogRepository,
        progress_repo: ProgressRepository,
        meditation_repo: ActivitySessionRepository[MeditationSession],
        workout_repo: ActivitySessionRepository[WorkoutSession],
        stats_repo: StatsRepository,
    ):
        self.log_repo = log_repo
        self.progress_repo = progress_repo
        self.meditation_repo = meditation_repo
        self.workout_repo = workout_repo
        self.stats_repo = stats_repo

    # ----- Helpers -----

    def _ask(self, llm: LLMClient, prompt: str, result_type: type[ResultT]) -> tuple[ResultT, dict[str, Any], int]:
        payload, latency_ms = llm.generate_json(SYSTEM_PROMPT, prompt)
        try:
            result = result_type.model_validate(payload)
        except PydanticValidationError as exc:
            raise ProviderError("AI returned an unexpected payload", details=str(exc)) from exc
        return result, payload, latency_ms

    def _record(
        self,
        session: Session,
        user_id: str,
        interaction_type: str,
        input_text: str,
        response: dict[str, Any],
        latency_ms: int,
        sentiment_score: float | None = None,
    ) -> None:
        try:
            self.log_repo.add_ai_interaction(
                session,
                AIInteraction(
                    user_id=user_id,
                    interaction_type=interaction_type,
                    input_text=input_text,
                    ai_response=json.dumps(response, default=str),
                    sentiment_score=sentiment_score,
                    processing_time_ms=latency_ms,
                ),
            )
        except StoreError as exc:
            logger.warning("Could not record AI interaction for %s: %s", user_id, exc.details)

    # ----- Features -----

    def analyze_mood(
        self,
        session: Session,
        llm: LLMClient,
        user_id: str,
        payload: MoodAnalysisRequest,
    ) -> MoodAnalysis:
        prompt = MOOD_PROMPT.format(
            language=payload.language,
            text=payload.text,
            activities=", ".join([*MEDITATIONS, *WORKOUTS]),
        )
        result, raw, latency_ms = self._ask(llm, prompt, MoodAnalysis)
        self._record(session, user_id, "mood_analysis", payload.text, raw, latency_ms, result.sentiment_score)
        return result

    def recommend(
        self,
        session: Session,
        llm: LLMClient,
        profile: Profile,
        payload: RecommendationRequest,
    ) -> Recommendation:
        prompt = RECOMMENDATION_PROMPT.format(
            mood=payload.mood,
            context=payload.context or "none",
            experience_level=profile.experience_level,
            goals=", ".join(profile.wellness_goals) or "none",
            meditations=", ".join(MEDITATIONS),
            workouts=", ".join(WORKOUTS),
        )
        result, raw, latency_ms = self._ask(llm, prompt, Recommendation)
        # Drop ids the model invented
        result.meditation_sessions = [m for m in result.meditation_sessions if m in MEDITATIONS]
        result.workout_routines = [w for w in result.workout_routines if w in WORKOUTS]
        self._record(session, profile.user_id, "recommendation", payload.mood, raw, latency_ms)
        return result

    def chat(
        self,
        session: Session,
        llm: LLMClient,
        profile: Profile,
        payload: ChatRequest,
    ) -> dict[str, Any]:
        prompt = CHAT_PROMPT.format(
            name=profile.display_name or "friend",
            language=profile.preferred_language,
            message=payload.message,
        )
        result, raw, latency_ms = self._ask(llm, prompt, ChatReply)
        self._record(session, profile.user_id, "chat", payload.message, raw, latency_ms)
        return {
            **result.model_dump(),
            "conversation_id": payload.conversation_id or uuid.uuid4(),
        }

    def _week_data(self, session: Session, user_id: str, week_start: date | None) -> dict[str, Any]:
        since, until, start, end = week_window(week_start)
        meditations = self.meditation_repo.list_completed(session, user_id, since=since, until=until)
        workouts = self.workout_repo.list_completed(session, user_id, since=since, until=until)
        checkins = self.progress_repo.list_checkins(session, user_id, since=since, until=until)
        return {
            "start": start,
            "end": end,
            "meditation_sessions": len(meditations),
            "meditation_minutes": sum(m.duration_minutes or 0 for m in meditations),
            "workout_sessions": len(workouts),
            "workout_minutes": sum(w.duration_minutes or 0 for w in workouts),
            "calories_burned": sum(w.calories_burned or 0 for w in workouts),
            "mood_ratings": [c.mood_rating for c in reversed(checkins)],
            "mood_tags": sorted({t for c in checkins for t in c.tags}),
        }

    def weekly_insights(
        self,
        session: Session,
        llm: LLMClient,
        profile: Profile,
        week_start: date | None = None,
    ) -> dict[str, Any]:
        data = self._week_data(session, profile.user_id, week_start)
        prompt = INSIGHTS_PROMPT.format(
            start=data["start"],
            end=data["end"],
            data=json.dumps(data, default=str, indent=2),
        )
        result, raw, latency_ms = self._ask(llm, prompt, WeeklyInsights)
        self._record(session, profile.user_id, "weekly_insights", f"week of {data['start']}", raw, latency_ms)
        return {**result.model_dump(), "week_start": data["start"], "week_end": data["end"]}

    def build_report(
        self,
        session: Session,
        llm: LLMClient | None,
        profile: Profile,
        week_start: date | None = None,
    ) -> dict[str, Any]:
        """
        Weekly report: local statistics plus AI insights when the LLM is
        configured.
        """
        data = self._week_data(session, profile.user_id, week_start)
        user_id = profile.user_id
        meditation_streak = calculate_streak(activity_dates(self.meditation_repo.completion_times(session, user_id)))
        workout_streak = calculate_streak(activity_dates(self.workout_repo.completion_times(session, user_id)))

        insights = None
        if llm is not None:
            insights = self.weekly_insights(session, llm, profile, week_start)

        return {
            "user": {
                "display_name": profile.display_name,
                "email": profile.email,
                "join_date": profile.created_at.date().isoformat(),
            },
            "period": {"start_date": data["start"].isoformat(), "end_date": data["end"].isoformat()},
            "stats": {
                "total_sessions": data["meditation_sessions"] + data["workout_sessions"],
                "meditation_sessions": data["meditation_sessions"],
                "workout_sessions": data["workout_sessions"],
                "total_minutes": data["meditation_minutes"] + data["workout_minutes"],
                "current_streaks": {
                    "meditation": meditation_streak["current"],
                    "workout": workout_streak["current"],
                },
                "achievements_count": self.stats_repo.count_achievements(session, user_id),
            },
            "insights": insights,
            "generated_at": utcnow().isoformat(),
        }

    def capabilities(self, llm: LLMClient | None) -> dict[str, Any]:
        ai_policy = POLICIES["ai"]
        return {
            "available": llm is not None,
            "model": llm.model if llm is not None else None,
            "features": FEATURES,
            "supported_languages": SUPPORTED_LANGUAGES,
            "max_text_length": MAX_TEXT_LENGTH,
            "rate_limit": {"requests": ai_policy.limit, "window_seconds": ai_policy.window},
            "generated_at": utcnow(),
        }
