# pranveda/repositories/stats_repo.py
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, SQLModel, select

from pranveda.models.gamification import CelebrationEvent, UserAchievement
from pranveda.models.profile import Profile
from pranveda.models.session import MeditationSession, WorkoutSession


class StatsRepository:
    """
    Read-only aggregated queries for leaderboards, levels and health metrics.
    """

    def celebration_scores(
        self,
        session: Session,
        since: datetime | None = None,
        event_type: str | None = None,
    ) -> list[tuple[str, int]]:
        """
        Sum of celebration score_increment per user, restricted to
        non-deleted profiles.

        Returns (user_id, score) pairs in no particular order; callers
        apply the ranking order.
        """
        score = func.coalesce(func.sum(CelebrationEvent.score_increment), 0)
        stmt = (
            select(CelebrationEvent.user_id, score.label("score"))
            .join(Profile, Profile.user_id == CelebrationEvent.user_id)
            .where(Profile.deleted_at.is_(None))
        )
        if since is not None:
            stmt = stmt.where(CelebrationEvent.created_at >= since)
        if event_type is not None:
            stmt = stmt.where(CelebrationEvent.event_type == event_type)
        stmt = stmt.group_by(CelebrationEvent.user_id)
        return [(user_id, int(total or 0)) for user_id, total in session.exec(stmt).all()]

    def celebration_points(self, session: Session, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(CelebrationEvent.score_increment), 0)).where(
            CelebrationEvent.user_id == user_id
        )
        return int(session.exec(stmt).one() or 0)

    def achievement_points(self, session: Session, user_id: str) -> int:
        stmt = select(func.coalesce(func.sum(UserAchievement.points_awarded), 0)).where(
            UserAchievement.user_id == user_id
        )
        return int(session.exec(stmt).one() or 0)

    def count_achievements(self, session: Session, user_id: str) -> int:
        stmt = select(func.count()).select_from(UserAchievement).where(
            UserAchievement.user_id == user_id
        )
        return int(session.exec(stmt).one() or 0)

    def total_minutes(
        self,
        session: Session,
        model: type[MeditationSession] | type[WorkoutSession],
        user_id: str,
        since: datetime | None = None,
    ) -> int:
        stmt = select(func.coalesce(func.sum(model.duration_minutes), 0)).where(
            model.user_id == user_id,
            model.status == "completed",
        )
        if since is not None:
            stmt = stmt.where(model.completed_at >= since)
        return int(session.exec(stmt).one() or 0)

    def count_rows(self, session: Session, model: type[SQLModel]) -> int:
        stmt = select(func.count()).select_from(model)
        value = session.exec(stmt).one()
        return int(value or 0)

    def count_active_profiles(self, session: Session) -> int:
        stmt = select(func.count()).select_from(Profile).where(Profile.deleted_at.is_(None))
        return int(session.exec(stmt).one() or 0)
