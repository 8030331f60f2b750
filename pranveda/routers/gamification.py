# pranveda/routers/gamification.py
import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlmodel import Session

from pranveda.core.auth import require_profile
from pranveda.core.timeutils import Period
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.gamification_repo import GamificationRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, ok
from pranveda.schemas.gamification import (
    BadgeRead,
    CelebrationRead,
    LeaderboardCategory,
    LeaderboardRead,
    LevelRead,
    MilestoneTrigger,
    RankingRead,
    RewardRead,
)
from pranveda.services.gamification_service import GamificationService

router = APIRouter(prefix="/wellness/gamification", tags=["Gamification"])

gamification_service = GamificationService(
    GamificationRepository(), ProfileRepository(), StatsRepository()
)


@router.get("/badges", response_model=ApiResponse[list[BadgeRead]])
def badges(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """Unlocked badges (newest first), then the ones still locked."""
    return ok(gamification_service.badges(session, profile.user_id))


@router.get("/levels", response_model=ApiResponse[LevelRead])
def levels(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(gamification_service.levels(session, profile.user_id))


@router.get("/rewards", response_model=ApiResponse[list[RewardRead]])
def rewards(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(gamification_service.rewards(session, profile.user_id))


@router.post(
    "/milestone",
    response_model=ApiResponse[CelebrationRead],
    status_code=status.HTTP_201_CREATED,
)
def trigger_milestone(
    payload: MilestoneTrigger,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    """
    Record a milestone reported by the client.

    Exactly one celebration is created. A `data.badge_unlocked` badge type
    is unlocked too, unless the caller already holds it.
    """
    celebration = gamification_service.trigger_milestone(
        session, profile.user_id, payload.event_type, payload.data
    )
    return ok(celebration, "Milestone celebrated")


@router.get("/celebrations", response_model=ApiResponse[list[CelebrationRead]])
def pending_celebrations(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(gamification_service.pending_celebrations(session, profile.user_id))


@router.put("/celebrations/{celebration_id}/viewed", response_model=ApiResponse[CelebrationRead])
def mark_viewed(
    celebration_id: uuid.UUID,
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(
        gamification_service.mark_viewed(session, profile.user_id, celebration_id),
        "Celebration marked as viewed",
    )


@router.get("/leaderboard", response_model=ApiResponse[LeaderboardRead])
def leaderboard(
    category: LeaderboardCategory = "overall",
    period: Period = "30d",
    limit: int = Query(10, ge=1, le=100),
    session: Session = Depends(get_session),
):
    """Public ranking by celebration score; ties go to the lower user id."""
    return ok(gamification_service.leaderboard(session, category, period, limit))


@router.get("/ranking", response_model=ApiResponse[RankingRead])
def ranking(
    category: LeaderboardCategory = "overall",
    period: Period = "30d",
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(gamification_service.ranking(session, profile.user_id, category, period))
