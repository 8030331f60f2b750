# pranveda/core/identity.py
"""
Firebase Auth adapter.

One `IdentityProvider` is built at startup (see `pranveda.main.lifespan`)
and stored on `app.state.identity`; request handlers reach it through the
`get_identity_provider` dependency. Every token verification round-trips to
Firebase (revocation check); nothing is cached here.
"""
import logging
from datetime import datetime, timezone
from typing import Any

import firebase_admin
import httpx
from fastapi import Request
from firebase_admin import auth, credentials
from firebase_admin.exceptions import FirebaseError
from pydantic import BaseModel, Field

from pranveda.core.config import Settings
from pranveda.core.errors import (
    ConflictError,
    InvalidToken,
    ProviderError,
    ServiceUnavailableError,
    UserNotFound,
)

logger = logging.getLogger(__name__)

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"

# Claims Firebase puts in every ID token; anything else is a custom claim.
_RESERVED_CLAIMS = {
    "aud", "auth_time", "exp", "firebase", "iat", "iss", "sub", "uid", "user_id",
    "email", "email_verified", "name", "picture", "phone_number",
}


class IdentityUser(BaseModel):
    """The identity provider's view of a user."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    name: str | None = None
    picture: str | None = None
    claims: dict[str, Any] = Field(default_factory=dict)
    disabled: bool = False
    created_at: datetime | None = None
    last_sign_in_at: datetime | None = None


def _from_millis(value: int | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


def _from_record(record: auth.UserRecord) -> IdentityUser:
    metadata = record.user_metadata
    return IdentityUser(
        uid=record.uid,
        email=record.email,
        email_verified=bool(record.email_verified),
        name=record.display_name,
        picture=record.photo_url,
        claims=dict(record.custom_claims or {}),
        disabled=bool(record.disabled),
        created_at=_from_millis(metadata.creation_timestamp) if metadata else None,
        last_sign_in_at=_from_millis(metadata.last_sign_in_timestamp) if metadata else None,
    )


class IdentityProvider:
    """
    Thin wrapper over `firebase_admin.auth` bound to one Firebase app.

    Raises:
        InvalidToken: token malformed, expired, revoked or signature-invalid.
        UserNotFound: uid/email unknown to the provider.
        ConflictError: email already registered (create_user).
        ProviderError: any other provider failure.
    """

    def __init__(self, app: firebase_admin.App, web_api_key: str | None = None):
        self._app = app
        self._web_api_key = web_api_key

    @classmethod
    def from_settings(cls, settings: Settings) -> "IdentityProvider":
        """
        Initialize the Firebase app from a service-account file, falling
        back to application default credentials.
        """
        if settings.FIREBASE_CREDENTIALS_FILE:
            cred = credentials.Certificate(settings.FIREBASE_CREDENTIALS_FILE)
        else:
            cred = credentials.ApplicationDefault()

        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        try:
            app = firebase_admin.get_app("pranveda")
        except ValueError:
            app = firebase_admin.initialize_app(cred, options, name="pranveda")
        return cls(app, web_api_key=settings.FIREBASE_WEB_API_KEY)

    # ----- Tokens -----

    def verify_token(self, token: str) -> IdentityUser:
        try:
            decoded = auth.verify_id_token(token, app=self._app, check_revoked=True)
        except (auth.InvalidIdTokenError, auth.UserDisabledError, ValueError) as exc:
            # Expired and revoked tokens are InvalidIdTokenError subclasses.
            logger.info("Token verification failed: %s", exc)
            raise InvalidToken() from exc
        except (auth.CertificateFetchError, FirebaseError) as exc:
            raise ProviderError("Token verification failed", details=str(exc)) from exc

        return IdentityUser(
            uid=decoded["uid"],
            email=decoded.get("email"),
            email_verified=bool(decoded.get("email_verified", False)),
            name=decoded.get("name"),
            picture=decoded.get("picture"),
            claims={k: v for k, v in decoded.items() if k not in _RESERVED_CLAIMS},
        )

    def create_custom_token(self, uid: str, claims: dict[str, Any] | None = None) -> str:
        try:
            token = auth.create_custom_token(uid, claims, app=self._app)
        except (ValueError, auth.TokenSignError) as exc:
            raise ProviderError("Could not mint custom token", details=str(exc)) from exc
        return token.decode("utf-8") if isinstance(token, bytes) else token

    # ----- Users -----

    def get_user(self, uid: str) -> IdentityUser:
        try:
            return _from_record(auth.get_user(uid, app=self._app))
        except auth.UserNotFoundError as exc:
            raise UserNotFound() from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to fetch user", details=str(exc)) from exc

    def get_user_by_email(self, email: str) -> IdentityUser:
        try:
            return _from_record(auth.get_user_by_email(email, app=self._app))
        except auth.UserNotFoundError as exc:
            raise UserNotFound() from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to fetch user", details=str(exc)) from exc

    def create_user(
        self,
        email: str,
        password: str,
        display_name: str | None = None,
    ) -> IdentityUser:
        try:
            record = auth.create_user(
                email=email,
                password=password,
                display_name=display_name,
                email_verified=False,
                app=self._app,
            )
        except auth.EmailAlreadyExistsError as exc:
            raise ConflictError("An account with this email already exists") from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to create user", details=str(exc)) from exc
        return _from_record(record)

    def delete_user(self, uid: str) -> None:
        try:
            auth.delete_user(uid, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFound() from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to delete user", details=str(exc)) from exc

    def update_claims(self, uid: str, claims: dict[str, Any] | None) -> None:
        """Replace the custom claims of a user (None clears them)."""
        try:
            auth.set_custom_user_claims(uid, claims, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFound() from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to update claims", details=str(exc)) from exc

    def update_password(self, uid: str, password: str) -> None:
        try:
            auth.update_user(uid, password=password, app=self._app)
        except auth.UserNotFoundError as exc:
            raise UserNotFound() from exc
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to update password", details=str(exc)) from exc

    def list_users(
        self,
        page_size: int = 100,
        page_token: str | None = None,
    ) -> tuple[list[IdentityUser], str | None]:
        try:
            page = auth.list_users(page_token=page_token, max_results=page_size, app=self._app)
        except (ValueError, FirebaseError) as exc:
            raise ProviderError("Failed to list users", details=str(exc)) from exc
        return [_from_record(u) for u in page.users], page.next_page_token or None

    def verify_password(self, email: str, password: str) -> bool:
        """
        Re-confirm a password through the Identity Toolkit REST API.

        Returns:
            True if Firebase accepts the credentials, False if it rejects them.
        """
        if not self._web_api_key:
            raise ServiceUnavailableError("Password confirmation is not configured")

        try:
            response = httpx.post(
                SIGN_IN_URL,
                params={"key": self._web_api_key},
                json={"email": email, "password": password, "returnSecureToken": True},
                timeout=10.0,
            )
        except httpx.HTTPError as exc:
            raise ProviderError("Password confirmation failed", details=str(exc)) from exc

        if response.status_code == 200:
            return True
        if response.status_code == 400:
            return False
        raise ProviderError(
            "Password confirmation failed",
            details=f"identity toolkit returned {response.status_code}",
        )


def get_identity_provider(request: Request) -> IdentityProvider:
    """FastAPI dependency returning the process-wide identity provider."""
    provider = getattr(request.app.state, "identity", None)
    if provider is None:
        raise ServiceUnavailableError("Identity provider is not configured")
    return provider
