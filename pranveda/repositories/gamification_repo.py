# pranveda/repositories/gamification_repo.py
import uuid

from sqlmodel import Session, select

from pranveda.models.gamification import CelebrationEvent, UserAchievement
from pranveda.repositories.base import save


class GamificationRepository:
    """
    Data access layer for celebrations and achievements.
    """

    # ---- Celebrations ----

    def get_celebration(self, session: Session, celebration_id: uuid.UUID) -> CelebrationEvent | None:
        return session.get(CelebrationEvent, celebration_id)

    def save_celebration(self, session: Session, celebration: CelebrationEvent) -> CelebrationEvent:
        return save(session, celebration)

    def list_celebrations(
        self,
        session: Session,
        user_id: str,
        viewed: bool | None = None,
        limit: int = 50,
    ) -> list[CelebrationEvent]:
        stmt = select(CelebrationEvent).where(CelebrationEvent.user_id == user_id)
        if viewed is not None:
            stmt = stmt.where(CelebrationEvent.viewed == viewed)
        stmt = stmt.order_by(CelebrationEvent.created_at.desc()).limit(limit)
        return list(session.exec(stmt).all())

    # ---- Achievements ----

    def list_achievements(self, session: Session, user_id: str) -> list[UserAchievement]:
        stmt = (
            select(UserAchievement)
            .where(UserAchievement.user_id == user_id)
            .order_by(UserAchievement.unlocked_at.desc())
        )
        return list(session.exec(stmt).all())

    def get_achievement(
        self,
        session: Session,
        user_id: str,
        badge_type: str,
    ) -> UserAchievement | None:
        stmt = select(UserAchievement).where(
            UserAchievement.user_id == user_id,
            UserAchievement.badge_type == badge_type,
        )
        return session.exec(stmt).first()

    def create_achievement(self, session: Session, achievement: UserAchievement) -> UserAchievement:
        return save(session, achievement)
