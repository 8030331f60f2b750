# pranveda/routers/progress.py
import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from pranveda.core.auth import require_profile
from pranveda.core.timeutils import Period
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.progress_repo import ProgressRepository
from pranveda.repositories.session_repo import meditation_repository, workout_repository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, Paginated, ok, page_meta
from pranveda.schemas.progress import (
    AnalyticsMetric,
    AnalyticsRead,
    GoalCreate,
    GoalRead,
    GoalUpdate,
    HistoryEntry,
    HistoryType,
    MoodCheckinCreate,
    MoodCheckinRead,
    ProgressStatsRead,
    StreaksRead,
)
from pranveda.services.progress_service import ProgressService

router = APIRouter(prefix="/wellness/progress", tags=["Progress"])

progress_service = ProgressService(
    ProgressRepository(),
    meditation_repository(),
    workout_repository(),
    StatsRepository(),
)


@router.get("/stats", response_model=ApiResponse[ProgressStatsRead])
def stats(
    period: Period = "30d",
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """Totals across meditation, workouts and check-ins for the period."""
    return ok(progress_service.stats(session, profile.user_id, period))


@router.get("/streaks", response_model=ApiResponse[StreaksRead])
def streaks(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.streaks(session, profile.user_id))


@router.get("/analytics", response_model=ApiResponse[AnalyticsRead])
def analytics(
    period: Period = "30d",
    metric: AnalyticsMetric = "all",
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.analytics(session, profile.user_id, period, metric))


@router.post(
    "/mood-checkin",
    response_model=ApiResponse[MoodCheckinRead],
    status_code=status.HTTP_201_CREATED,
)
def mood_checkin(
    payload: MoodCheckinCreate,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.create_checkin(session, profile.user_id, payload), "Mood check-in recorded")


@router.get("/history", response_model=ApiResponse[Paginated[HistoryEntry]])
def history(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=100),
    start_date: date | None = None,
    end_date: date | None = None,
    type: HistoryType | None = Query(None, description="Restrict to one entry type"),
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """Completed sessions and mood check-ins on one timeline, newest first."""
    items, total = progress_service.history(
        session, profile.user_id, page, limit, start_date, end_date, type
    )
    return ok({"items": items, "pagination": page_meta(page, limit, total)})


# -------- Goals --------


@router.get("/goals", response_model=ApiResponse[list[GoalRead]])
def list_goals(
    include_inactive: bool = False,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.list_goals(session, profile.user_id, active_only=not include_inactive))


@router.post("/goals", response_model=ApiResponse[GoalRead], status_code=status.HTTP_201_CREATED)
def create_goal(
    payload: GoalCreate,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.create_goal(session, profile.user_id, payload), "Goal created")


@router.put("/goals/{goal_id}", response_model=ApiResponse[GoalRead])
def update_goal(
    goal_id: uuid.UUID,
    payload: GoalUpdate,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.update_goal(session, profile.user_id, goal_id, payload), "Goal updated")
