# pranveda/routers/ai.py
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Response
from sqlmodel import Session

from pranveda.core.auth import require_profile
from pranveda.core.llm import LLMClient, get_llm_client, get_optional_llm_client
from pranveda.core.pdf import render_wellness_report
from pranveda.core.rate_limit import rate_limit
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.repositories.progress_repo import ProgressRepository
from pranveda.repositories.session_repo import meditation_repository, workout_repository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.ai import (
    CapabilitiesRead,
    ChatRead,
    ChatRequest,
    MoodAnalysis,
    MoodAnalysisRequest,
    Recommendation,
    RecommendationRequest,
    ReportFormat,
    WeeklyInsightsRead,
)
from pranveda.schemas.common import ApiResponse, ok
from pranveda.services.ai_service import AIService

router = APIRouter(prefix="/ai", tags=["AI"])

ai_service = AIService(
    ActivityLogRepository(),
    ProgressRepository(),
    meditation_repository(),
    workout_repository(),
    StatsRepository(),
)

ai_limit = [Depends(rate_limit("ai"))]


@router.post("/mood-analysis", response_model=ApiResponse[MoodAnalysis], dependencies=ai_limit)
def mood_analysis(
    payload: MoodAnalysisRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
    llm: LLMClient = Depends(get_llm_client),
):
    """
    Classify the mood of a free-text entry.

    Blank text is rejected with 422 before any model call.
    """
    return ok(ai_service.analyze_mood(session, llm, profile.user_id, payload))


@router.post("/recommendation", response_model=ApiResponse[Recommendation], dependencies=ai_limit)
def recommendation(
    payload: RecommendationRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
    llm: LLMClient = Depends(get_llm_client),
):
    return ok(ai_service.recommend(session, llm, profile, payload))


@router.post("/chat", response_model=ApiResponse[ChatRead], dependencies=ai_limit)
def chat(
    payload: ChatRequest,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
    llm: LLMClient = Depends(get_llm_client),
):
    """Single-turn reply; no history is stored server side."""
    return ok(ai_service.chat(session, llm, profile, payload))


@router.get("/weekly-insights", response_model=ApiResponse[WeeklyInsightsRead], dependencies=ai_limit)
def weekly_insights(
    week_start: date | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
    llm: LLMClient = Depends(get_llm_client),
):
    return ok(ai_service.weekly_insights(session, llm, profile, week_start))


@router.get(
    "/report",
    response_model=ApiResponse[dict[str, Any]],
    dependencies=ai_limit,
    responses={200: {"content": {"application/pdf": {}}}},
)
def report(
    format: ReportFormat = "json",
    week_start: date | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
    llm: LLMClient | None = Depends(get_optional_llm_client),
):
    """
    Weekly wellness report.

    format=pdf returns the rendered document as an attachment; insights are
    left out when the AI service is not configured.
    """
    data = ai_service.build_report(session, llm, profile, week_start)
    if format == "pdf":
        filename = f"wellness-report-{data['period']['start_date']}.pdf"
        return Response(
            content=render_wellness_report(data),
            media_type="application/pdf",
            headers={"Content-Disposition": f'attachment; filename="{filename}"'},
        )
    return ok(data)


@router.get("/capabilities", response_model=ApiResponse[CapabilitiesRead])
def capabilities(llm: LLMClient | None = Depends(get_optional_llm_client)):
    return ok(ai_service.capabilities(llm))
