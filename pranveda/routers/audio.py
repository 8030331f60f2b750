# pranveda/routers/audio.py
from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from pranveda.core.auth import require_profile
from pranveda.core.storage_utils import AudioStorage, get_audio_storage
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.schemas.audio import AudioCategory, AudioFeedbackCreate, AudioFeedbackRead, AudioTrack
from pranveda.schemas.common import ApiResponse, ok
from pranveda.services.audio_service import AudioService

router = APIRouter(prefix="/audio", tags=["Audio"])

audio_service = AudioService(ActivityLogRepository())


@router.get("/celebrations", response_model=ApiResponse[list[AudioTrack]])
def celebration_audio(
    event_type: str | None = None,
    storage: AudioStorage = Depends(get_audio_storage),
):
    return ok(audio_service.celebrations(storage, event_type))


@router.get("/meditation", response_model=ApiResponse[list[AudioTrack]])
def meditation_audio(
    category: str | None = None,
    duration: int | None = Query(None, ge=1, le=480, description="Maximum length in minutes"),
    storage: AudioStorage = Depends(get_audio_storage),
):
    return ok(audio_service.meditation(storage, category, duration))


@router.get("/ambient", response_model=ApiResponse[list[AudioTrack]])
def ambient_audio(
    type: str | None = None,
    duration: int | None = Query(None, ge=1, le=480, description="Maximum length in minutes"),
    storage: AudioStorage = Depends(get_audio_storage),
):
    return ok(audio_service.ambient(storage, type, duration))


@router.get("/categories", response_model=ApiResponse[list[AudioCategory]])
def audio_categories():
    return ok(audio_service.categories())


@router.post(
    "/feedback",
    response_model=ApiResponse[AudioFeedbackRead],
    status_code=status.HTTP_201_CREATED,
)
def audio_feedback(
    payload: AudioFeedbackCreate,
    session: Session = Depends(get_session),
    storage: AudioStorage = Depends(get_audio_storage),
    profile: Profile = Depends(require_profile),
):
    """Log a playback event (play, skip, like...)."""
    entry = audio_service.log_feedback(session, storage, profile.user_id, payload)
    return ok(entry, "Feedback recorded")
