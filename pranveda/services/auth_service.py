# pranveda/services/auth_service.py
import logging
import secrets
from datetime import timedelta
from typing import Any

from fastapi import Depends
from sqlmodel import Session

from pranveda.core import email_client
from pranveda.core.config import get_settings
from pranveda.core.errors import (
    AppError,
    AuthenticationError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    StoreError,
    UserNotFound,
    ValidationError,
)
from pranveda.core.identity import IdentityProvider, IdentityUser, get_identity_provider
from pranveda.core.timeutils import utcnow
from pranveda.models.activity_log import PasswordResetToken
from pranveda.models.profile import Profile
from pranveda.repositories.activity_log_repo import ActivityLogRepository
from pranveda.repositories.profile_repo import ProfileRepository
from pranveda.schemas.profile import PreferencesUpdate, RegisterRequest, SignupRequest

logger = logging.getLogger(__name__)

# Custom claim set on an identity whose profile could not be created.
PENDING_PROFILE_CLAIM = "pending_profile"


def _default_name(identity_user: IdentityUser) -> str | None:
    if identity_user.name:
        return identity_user.name[:50]
    if identity_user.email and "@" in identity_user.email:
        return identity_user.email.split("@", 1)[0][:50]
    return None


class AuthService:
    """
    Account lifecycle: Anonymous -> Registered (profile created) -> Active.

    Responsibilities:
      - idempotent profile registration
      - lazy repair of identities left without a profile
      - preference updates, soft account deletion
      - password reset tokens (single use, time bounded)
      - admin proxies to the identity provider
    """

    def __init__(
        self,
        repo: ProfileRepository,
        log_repo: ActivityLogRepository,
        identity: IdentityProvider,
    ):
        self.repo = repo
        self.log_repo = log_repo
        self.identity = identity

    # ----- Profile provisioning -----

    def _clear_pending_claim(self, identity_user: IdentityUser) -> None:
        claims = {k: v for k, v in identity_user.claims.items() if k != PENDING_PROFILE_CLAIM}
        try:
            self.identity.update_claims(identity_user.uid, claims or None)
        except AppError as exc:
            # The profile exists; the stale claim is retried on the next request.
            logger.warning("Could not clear pending_profile claim for %s: %s", identity_user.uid, exc.message)

    def _create_profile(
        self,
        session: Session,
        identity_user: IdentityUser,
        payload: RegisterRequest | None = None,
    ) -> Profile:
        if identity_user.email:
            other = self.repo.get_by_email(session, identity_user.email)
            if other is not None and other.user_id != identity_user.uid:
                raise ConflictError("Email is already linked to another profile")

        fields = payload.model_dump(exclude_none=True) if payload else {}
        if "avatar_url" in fields:
            fields["avatar_url"] = str(fields["avatar_url"])

        profile = Profile(
            user_id=identity_user.uid,
            email=identity_user.email,
            display_name=fields.pop("display_name", None) or _default_name(identity_user),
            avatar_url=fields.pop("avatar_url", None) or identity_user.picture,
            **fields,
        )
        profile = self.repo.create(session, profile)
        logger.info("Profile created for %s", identity_user.uid)

        if identity_user.claims.get(PENDING_PROFILE_CLAIM):
            logger.info("Repaired pending profile for %s", identity_user.uid)
            self._clear_pending_claim(identity_user)
        return profile

    def ensure_profile(self, session: Session, identity_user: IdentityUser) -> Profile:
        """
        Return the caller's active profile, creating it on first
        authenticated request.

        Raises:
            ForbiddenError: profile was soft-deleted.
        """
        profile = self.repo.get_by_user_id(session, identity_user.uid)
        if profile is None:
            return self._create_profile(session, identity_user)
        if profile.deleted_at is not None:
            raise ForbiddenError("This account has been deleted")
        if identity_user.claims.get(PENDING_PROFILE_CLAIM):
            self._clear_pending_claim(identity_user)
        return profile

    def register(
        self,
        session: Session,
        identity_user: IdentityUser,
        payload: RegisterRequest,
    ) -> tuple[Profile, bool]:
        """
        Create the caller's profile if absent.

        Idempotent: an existing profile is returned unchanged.

        Returns:
            (profile, created)
        """
        existing = self.repo.get_by_user_id(session, identity_user.uid)
        if existing is not None:
            if existing.deleted_at is not None:
                raise ForbiddenError("This account has been deleted")
            return existing, False
        return self._create_profile(session, identity_user, payload), True

    def signup(self, session: Session, payload: SignupRequest) -> dict[str, Any]:
        """
        Create identity then profile.

        The two writes are not atomic. If the profile insert fails the
        identity is tagged with the pending_profile claim and the profile is
        created on its next authenticated request.
        """
        user = self.identity.create_user(payload.email, payload.password, payload.display_name)
        logger.info("Identity created for %s", user.uid)

        try:
            profile = self._create_profile(
                session, user, RegisterRequest(display_name=payload.display_name)
            )
        except (StoreError, ConflictError) as exc:
            logger.warning("Profile creation failed for %s, marking pending: %s", user.uid, exc.message)
            self.identity.update_claims(user.uid, {**user.claims, PENDING_PROFILE_CLAIM: True})
            return {"user": user, "profile": None, "profile_pending": True}

        return {"user": user, "profile": profile, "profile_pending": False}

    # ----- Self service -----

    def get_active_profile(self, session: Session, identity_user: IdentityUser) -> Profile | None:
        profile = self.repo.get_by_user_id(session, identity_user.uid)
        if profile is None or profile.deleted_at is not None:
            return None
        return profile

    def me(self, session: Session, identity_user: IdentityUser) -> dict[str, Any]:
        profile = self.get_active_profile(session, identity_user)
        return {
            "user": identity_user,
            "profile": profile,
            "profile_complete": profile is not None,
        }

    def update_preferences(
        self,
        session: Session,
        identity_user: IdentityUser,
        payload: PreferencesUpdate,
    ) -> Profile:
        """
        Partial update; only fields present in the payload change.
        Notification and privacy settings are merged key by key.
        """
        profile = self.repo.get_by_user_id(session, identity_user.uid)
        if profile is None:
            raise NotFoundError("Profile not found. Please register first.")
        if profile.deleted_at is not None:
            raise ForbiddenError("This account has been deleted")

        data = payload.model_dump(exclude_unset=True, exclude={"notifications", "privacy"})
        for key, value in data.items():
            if key == "avatar_url" and value is not None:
                value = str(value)
            if key in {"preferred_language", "experience_level", "wellness_goals"} and value is None:
                continue
            setattr(profile, key, value)

        if payload.notifications is not None:
            profile.notifications = {
                **profile.notifications,
                **payload.notifications.model_dump(exclude_none=True),
            }
        if payload.privacy is not None:
            profile.privacy = {**profile.privacy, **payload.privacy.model_dump(exclude_none=True)}

        profile.updated_at = utcnow()
        profile = self.repo.update(session, profile)
        logger.info("Preferences updated for %s", identity_user.uid)
        return profile

    def verify_token(self, session: Session, identity_user: IdentityUser) -> dict[str, Any]:
        return {
            "valid": True,
            "uid": identity_user.uid,
            "email": identity_user.email,
            "email_verified": identity_user.email_verified,
            "profile_exists": self.get_active_profile(session, identity_user) is not None,
        }

    def refresh(self, identity_user: IdentityUser) -> dict[str, str]:
        return {"custom_token": self.identity.create_custom_token(identity_user.uid)}

    def session_info(self, identity_user: IdentityUser) -> dict[str, Any]:
        record = self.identity.get_user(identity_user.uid)
        return {
            "uid": record.uid,
            "email": record.email,
            "email_verified": record.email_verified,
            "created_at": record.created_at,
            "last_sign_in_at": record.last_sign_in_at,
        }

    def check_user(self, email: str) -> bool:
        try:
            self.identity.get_user_by_email(email)
        except UserNotFound:
            return False
        return True

    def delete_account(self, session: Session, identity_user: IdentityUser, password: str) -> None:
        """
        Soft-delete the caller's profile after password re-confirmation.

        The identity provider's record is left untouched.
        """
        profile = self.get_active_profile(session, identity_user)
        if profile is None:
            raise NotFoundError("Profile not found")

        email = identity_user.email or profile.email
        if not email:
            raise ValidationError("Account has no email to confirm the password against")
        if not self.identity.verify_password(email, password):
            raise AuthenticationError("Password confirmation failed")

        profile.deleted_at = utcnow()
        profile.updated_at = profile.deleted_at
        self.repo.update(session, profile)
        logger.info("Profile soft-deleted for %s", identity_user.uid)

    # ----- Password reset -----

    def forgot_password(self, session: Session, email: str) -> None:
        """
        Issue a reset token if the email belongs to an account.

        The caller always gets the same answer, whether or not the email
        exists.
        """
        try:
            user = self.identity.get_user_by_email(email)
        except UserNotFound:
            logger.info("Password reset requested for unknown email")
            return

        settings = get_settings()
        token = secrets.token_hex(32)
        self.log_repo.add_reset_token(
            session,
            PasswordResetToken(
                user_id=user.uid,
                token=token,
                expires_at=utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TTL_MINUTES),
            ),
        )
        logger.info("Password reset token issued for %s", user.uid)

        reset_link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={token}"
        email_client.send_password_reset_email(email, reset_link, settings.PASSWORD_RESET_TTL_MINUTES)

    def reset_password(self, session: Session, token: str, new_password: str) -> None:
        record = self.log_repo.consume_reset_token(session, token, utcnow())
        if record is None:
            raise ValidationError("Invalid or expired reset token", field="token")

        # The token stays spent even if the provider update below fails.
        self.identity.update_password(record.user_id, new_password)
        logger.info("Password reset completed for %s", record.user_id)

    # ----- Admin -----

    def list_users(self, page_size: int, page_token: str | None) -> dict[str, Any]:
        users, next_token = self.identity.list_users(page_size, page_token)
        return {"users": users, "next_page_token": next_token}

    def update_claims(self, uid: str, claims: dict[str, Any]) -> IdentityUser:
        self.identity.update_claims(uid, claims)
        logger.info("Custom claims updated for %s", uid)
        return self.identity.get_user(uid)

    def admin_delete_user(self, session: Session, uid: str) -> None:
        """Explicit admin action: remove the identity and soft-delete the profile."""
        self.identity.delete_user(uid)
        profile = self.repo.get_by_user_id(session, uid)
        if profile is not None and profile.deleted_at is None:
            profile.deleted_at = utcnow()
            self.repo.update(session, profile)
        logger.info("Admin deleted identity %s", uid)


profile_repo = ProfileRepository()
log_repo = ActivityLogRepository()


def get_auth_service(identity: IdentityProvider = Depends(get_identity_provider)) -> AuthService:
    return AuthService(profile_repo, log_repo, identity)
