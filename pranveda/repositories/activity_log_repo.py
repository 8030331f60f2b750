# pranveda/repositories/activity_log_repo.py
from datetime import datetime

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, select

from pranveda.core.errors import StoreError
from pranveda.models.activity_log import AIInteraction, AudioFeedback, PasswordResetToken
from pranveda.repositories.base import save


class ActivityLogRepository:
    """
    Append-only logs (audio feedback, AI interactions) and password reset
    tokens.
    """

    def add_audio_feedback(self, session: Session, entry: AudioFeedback) -> AudioFeedback:
        return save(session, entry)

    def add_ai_interaction(self, session: Session, entry: AIInteraction) -> AIInteraction:
        return save(session, entry)

    # ---- Password reset tokens ----

    def add_reset_token(self, session: Session, token: PasswordResetToken) -> PasswordResetToken:
        return save(session, token)

    def get_reset_token(self, session: Session, token: str) -> PasswordResetToken | None:
        stmt = select(PasswordResetToken).where(PasswordResetToken.token == token)
        return session.exec(stmt).first()

    def consume_reset_token(self, session: Session, token: str, now: datetime) -> PasswordResetToken | None:
        """
        Mark a live token as used with a single conditional UPDATE.

        Returns:
            The token row if this call consumed it; None if the token is
            unknown, expired or was already used (including by a
            concurrent request).
        """
        stmt = (
            update(PasswordResetToken)
            .where(
                col(PasswordResetToken.token) == token,
                col(PasswordResetToken.used).is_(False),
                col(PasswordResetToken.expires_at) > now,
            )
            .values(used=True, used_at=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = session.exec(stmt)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            raise StoreError("Failed to consume password reset token", details=str(exc)) from exc

        if result.rowcount != 1:
            return None
        return self.get_reset_token(session, token)
