# pranveda/repositories/profile_repo.py
from sqlmodel import Session, select

from pranveda.models.profile import Profile
from pranveda.repositories.base import save


class ProfileRepository:
    """
    Data access layer for Profile.

    Responsibilities:
      - Pure DB operations (CRUD + queries)
      - No FastAPI, no HTTP, no business logic
    """

    def get_by_user_id(self, session: Session, user_id: str) -> Profile | None:
        """Return the profile for an identity uid (deleted or not), or None."""
        stmt = select(Profile).where(Profile.user_id == user_id)
        return session.exec(stmt).first()

    def get_by_email(self, session: Session, email: str) -> Profile | None:
        stmt = select(Profile).where(Profile.email == email)
        return session.exec(stmt).first()

    def list_active(self, session: Session, user_ids: list[str] | None = None) -> list[Profile]:
        """Non-deleted profiles, optionally restricted to a set of uids."""
        stmt = select(Profile).where(Profile.deleted_at.is_(None))
        if user_ids is not None:
            if not user_ids:
                return []
            stmt = stmt.where(Profile.user_id.in_(user_ids))
        return list(session.exec(stmt).all())

    def create(self, session: Session, profile: Profile) -> Profile:
        return save(session, profile)

    def update(self, session: Session, profile: Profile) -> Profile:
        return save(session, profile)
