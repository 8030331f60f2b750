# pranveda/routers/meditation.py
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from pranveda.core.auth import require_auth, require_profile
from pranveda.core.storage_utils import AudioStorage, get_audio_storage
from pranveda.core.timeutils import Period
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.gamification_repo import GamificationRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.repositories.session_repo import meditation_repository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, Paginated, ok, page_meta
from pranveda.schemas.session import (
    ActivityStatsRead,
    CatalogCategory,
    Difficulty,
    MeditationComplete,
    MeditationCompletionRead,
    MeditationContent,
    MeditationSessionRead,
    MeditationStart,
    ProgressSave,
    SessionRating,
    Technique,
)
from pranveda.services.catalog import MEDITATION_CATEGORIES, MEDITATION_TECHNIQUES
from pranveda.services.gamification_service import GamificationService
from pranveda.services.session_service import MeditationService

router = APIRouter(prefix="/wellness/meditation", tags=["Meditation"])

gamification_service = GamificationService(
    GamificationRepository(), ProfileRepository(), StatsRepository()
)
meditation_service = MeditationService(meditation_repository(), gamification_service)


# -------- Catalog --------


@router.get("/sessions", response_model=ApiResponse[list[MeditationContent]])
def list_sessions(
    category: str | None = None,
    difficulty: Difficulty | None = None,
    duration: int | None = Query(None, ge=1, le=480, description="Maximum length in minutes"),
    storage: AudioStorage = Depends(get_audio_storage),
    identity_user=Depends(require_auth),
):
    """List guided meditations, optionally filtered."""
    return ok(meditation_service.list_content(storage, category, difficulty, duration))


@router.get("/categories", response_model=ApiResponse[list[CatalogCategory]])
def list_categories():
    return ok(MEDITATION_CATEGORIES)


@router.get("/techniques", response_model=ApiResponse[list[Technique]])
def list_techniques():
    return ok(MEDITATION_TECHNIQUES)


@router.get("/recommendations", response_model=ApiResponse[list[MeditationContent]])
def recommendations(
    mood: int | None = Query(None, ge=1, le=5),
    energy_level: int | None = Query(None, ge=1, le=5),
    stress_level: int | None = Query(None, ge=1, le=5),
    storage: AudioStorage = Depends(get_audio_storage),
    profile: Profile = Depends(require_profile),
):
    """Up to three meditations suited to the caller's current state and experience."""
    return ok(meditation_service.recommendations(storage, profile, mood, energy_level, stress_level))


@router.get("/sessions/{content_id}", response_model=ApiResponse[MeditationContent])
def read_session_content(
    content_id: str,
    storage: AudioStorage = Depends(get_audio_storage),
    identity_user=Depends(require_auth),
):
    return ok(meditation_service.content_detail(storage, content_id))


# -------- Session lifecycle --------


@router.post(
    "/sessions/{content_id}/start",
    response_model=ApiResponse[MeditationSessionRead],
    status_code=status.HTTP_201_CREATED,
)
def start_session(
    content_id: str,
    payload: MeditationStart | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    expected = payload.expected_duration if payload else None
    record = meditation_service.start(session, profile, content_id, expected)
    return ok(record, "Meditation session started")


@router.post("/sessions/{session_id}/complete", response_model=ApiResponse[MeditationCompletionRead])
def complete_session(
    session_id: str,
    payload: MeditationComplete | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """
    Finish a session owned by the caller.

    Errors:
      - 404 unknown session id
      - 403 session of another user (row left untouched)
      - 409 session already completed
    """
    record, celebration = meditation_service.complete(session, profile.user_id, session_id, payload)
    return ok({"session": record, "celebration": celebration}, "Meditation session completed")


@router.post("/sessions/{session_id}/progress", response_model=ApiResponse[MeditationSessionRead])
def save_progress(
    session_id: str,
    payload: ProgressSave,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(meditation_service.save_progress(session, profile.user_id, session_id, payload), "Progress saved")


@router.post("/sessions/{session_id}/rate", response_model=ApiResponse[MeditationSessionRead])
def rate_session(
    session_id: str,
    payload: SessionRating,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(meditation_service.rate(session, profile.user_id, session_id, payload), "Rating saved")


# -------- History & stats --------


@router.get("/history", response_model=ApiResponse[Paginated[MeditationSessionRead]])
def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    start_date: date | None = None,
    end_date: date | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """Completed sessions, newest first."""
    items, total = meditation_service.history(
        session, profile.user_id, page, limit, start_date, end_date
    )
    return ok({"items": items, "pagination": page_meta(page, limit, total)})


@router.get("/stats", response_model=ApiResponse[ActivityStatsRead])
def stats(
    period: Period = "30d",
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(meditation_service.stats(session, profile.user_id, period))
