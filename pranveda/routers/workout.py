# pranveda/routers/workout.py
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from pranveda.core.auth import require_auth, require_profile
from pranveda.core.timeutils import Period
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.gamification_repo import GamificationRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.repositories.session_repo import workout_repository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, Paginated, ok, page_meta
from pranveda.schemas.session import (
    ActivityStatsRead,
    CatalogCategory,
    Difficulty,
    Exercise,
    ProgressSave,
    SessionRating,
    WorkoutComplete,
    WorkoutCompletionRead,
    WorkoutRoutine,
    WorkoutSessionRead,
    WorkoutStart,
)
from pranveda.services.catalog import EXERCISES, WORKOUT_CATEGORIES
from pranveda.services.gamification_service import GamificationService
from pranveda.services.session_service import WorkoutService

router = APIRouter(prefix="/wellness/workout", tags=["Workout"])

gamification_service = GamificationService(
    GamificationRepository(), ProfileRepository(), StatsRepository()
)
workout_service = WorkoutService(workout_repository(), gamification_service)


@router.get("/routines", response_model=ApiResponse[list[WorkoutRoutine]])
def list_routines(
    category: str | None = None,
    difficulty: Difficulty | None = None,
    duration: int | None = Query(None, ge=1, le=180, description="Maximum length in minutes"),
    identity_user=Depends(require_auth),
):
    return ok(workout_service.list_content(category, difficulty, duration))


@router.get("/categories", response_model=ApiResponse[list[CatalogCategory]])
def list_categories():
    return ok(WORKOUT_CATEGORIES)


@router.get("/exercises", response_model=ApiResponse[list[Exercise]])
def list_exercises():
    return ok(list(EXERCISES.values()))


@router.get("/recommendations", response_model=ApiResponse[list[WorkoutRoutine]])
def recommendations(
    energy_level: int | None = Query(None, ge=1, le=5),
    fitness_level: Difficulty | None = None,
    goals: list[str] | None = Query(None),
    profile: Profile = Depends(require_profile),
):
    """Up to three routines matched to fitness level, energy and goals."""
    return ok(workout_service.recommendations(profile, energy_level, fitness_level, goals))


@router.get("/routines/{routine_id}", response_model=ApiResponse[WorkoutRoutine])
def read_routine(routine_id: str, identity_user=Depends(require_auth)):
    return ok(workout_service.get_content(routine_id))


@router.post(
    "/routines/{routine_id}/start",
    response_model=ApiResponse[WorkoutSessionRead],
    status_code=status.HTTP_201_CREATED,
)
def start_workout(
    routine_id: str,
    payload: WorkoutStart | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    expected = payload.expected_duration if payload else None
    return ok(workout_service.start(session, profile, routine_id, expected), "Workout started")


@router.post("/routines/{session_id}/complete", response_model=ApiResponse[WorkoutCompletionRead])
def complete_workout(
    session_id: str,
    payload: WorkoutComplete | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """
    Finish a workout session owned by the caller.

    `session_id` is the id returned by /start, not the routine id.
    """
    record, celebration = workout_service.complete(session, profile.user_id, session_id, payload)
    return ok({"session": record, "celebration": celebration}, "Workout completed")


@router.post("/routines/{session_id}/progress", response_model=ApiResponse[WorkoutSessionRead])
def save_progress(
    session_id: str,
    payload: ProgressSave,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(workout_service.save_progress(session, profile.user_id, session_id, payload), "Progress saved")


@router.post("/routines/{session_id}/rate", response_model=ApiResponse[WorkoutSessionRead])
def rate_workout(
    session_id: str,
    payload: SessionRating,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(workout_service.rate(session, profile.user_id, session_id, payload), "Rating saved")


@router.get("/history", response_model=ApiResponse[Paginated[WorkoutSessionRead]])
def history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=50),
    start_date: date | None = None,
    end_date: date | None = None,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    items, total = workout_service.history(session, profile.user_id, page, limit, start_date, end_date)
    return ok({"items": items, "pagination": page_meta(page, limit, total)})


@router.get("/stats", response_model=ApiResponse[ActivityStatsRead])
def stats(
    period: Period = "30d",
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(workout_service.stats(session, profile.user_id, period))
