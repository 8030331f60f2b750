# pranveda/repositories/progress_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from pranveda.models.progress import MoodCheckin, UserGoal
from pranveda.repositories.base import save


class ProgressRepository:
    """
    Data access layer for mood check-ins and goals.
    """

    # ---- Mood check-ins ----

    def create_checkin(self, session: Session, checkin: MoodCheckin) -> MoodCheckin:
        return save(session, checkin)

    def list_checkins(
        self,
        session: Session,
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        limit: int | None = None,
    ) -> list[MoodCheckin]:
        """Check-ins in [since, until), newest first."""
        stmt = self._checkins_stmt(select(MoodCheckin), user_id, since, until)
        stmt = stmt.order_by(MoodCheckin.created_at.desc(), MoodCheckin.id)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.exec(stmt).all())

    def count_checkins(
        self,
        session: Session,
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int:
        stmt = self._checkins_stmt(select(func.count()).select_from(MoodCheckin), user_id, since, until)
        return int(session.exec(stmt).one() or 0)

    def _checkins_stmt(self, stmt, user_id: str, since: datetime | None, until: datetime | None):
        stmt = stmt.where(MoodCheckin.user_id == user_id)
        if since is not None:
            stmt = stmt.where(MoodCheckin.created_at >= since)
        if until is not None:
            stmt = stmt.where(MoodCheckin.created_at < until)
        return stmt

    # ---- Goals ----

    def get_goal(self, session: Session, goal_id: uuid.UUID) -> UserGoal | None:
        return session.get(UserGoal, goal_id)

    def list_goals(
        self,
        session: Session,
        user_id: str,
        status: str | None = None,
    ) -> list[UserGoal]:
        stmt = select(UserGoal).where(UserGoal.user_id == user_id)
        if status is not None:
            stmt = stmt.where(UserGoal.status == status)
        stmt = stmt.order_by(UserGoal.created_at.desc())
        return list(session.exec(stmt).all())

    def save_goal(self, session: Session, goal: UserGoal) -> UserGoal:
        return save(session, goal)
