# pranveda/repositories/session_repo.py
import uuid
from datetime import datetime
from typing import Generic, TypeVar

from sqlalchemy import func
from sqlmodel import Session, select

from pranveda.models.session import MeditationSession, WorkoutSession
from pranveda.repositories.base import save

SessionT = TypeVar("SessionT", MeditationSession, WorkoutSession)


class ActivitySessionRepository(Generic[SessionT]):
    """
    Data access for one session table (meditation or workout).

    The table class is bound at construction so both activity kinds share
    the same queries.
    """

    def __init__(self, model: type[SessionT]):
        self.model = model

    def get_by_id(self, session: Session, session_id: uuid.UUID) -> SessionT | None:
        return session.get(self.model, session_id)

    def create(self, session: Session, record: SessionT) -> SessionT:
        return save(session, record)

    def update(self, session: Session, record: SessionT) -> SessionT:
        return save(session, record)

    def _completed_stmt(
        self,
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ):
        m = self.model
        stmt = select(m).where(m.user_id == user_id, m.status == "completed")
        if since is not None:
            stmt = stmt.where(m.completed_at >= since)
        if until is not None:
            stmt = stmt.where(m.completed_at < until)
        return stmt

    def list_completed(
        self,
        session: Session,
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
        skip: int = 0,
        limit: int | None = None,
    ) -> list[SessionT]:
        """Completed sessions, newest first."""
        m = self.model
        stmt = self._completed_stmt(user_id, since, until).order_by(
            m.completed_at.desc(), m.id
        )
        if skip:
            stmt = stmt.offset(skip)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(session.exec(stmt).all())

    def count_completed(
        self,
        session: Session,
        user_id: str,
        since: datetime | None = None,
        until: datetime | None = None,
    ) -> int:
        m = self.model
        stmt = select(func.count()).select_from(m).where(
            m.user_id == user_id, m.status == "completed"
        )
        if since is not None:
            stmt = stmt.where(m.completed_at >= since)
        if until is not None:
            stmt = stmt.where(m.completed_at < until)
        value = session.exec(stmt).one()
        return int(value or 0)

    def completion_times(self, session: Session, user_id: str) -> list[datetime]:
        """All completion timestamps for the user, used for streaks."""
        m = self.model
        stmt = select(m.completed_at).where(
            m.user_id == user_id,
            m.status == "completed",
            m.completed_at.is_not(None),
        )
        return [value for value in session.exec(stmt).all() if value is not None]


def meditation_repository() -> ActivitySessionRepository[MeditationSession]:
    return ActivitySessionRepository(MeditationSession)


def workout_repository() -> ActivitySessionRepository[WorkoutSession]:
    return ActivitySessionRepository(WorkoutSession)

