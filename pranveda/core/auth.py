# pranveda/core/auth.py
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlmodel import Session

from pranveda.core.errors import AuthenticationError, ForbiddenError
from pranveda.core.identity import IdentityProvider, IdentityUser, get_identity_provider
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.services.auth_service import AuthService, get_auth_service

# HTTP Bearer scheme:
# - auto_error=False => a missing Authorization header does not raise
#   immediately, so the envelope handler can answer 401 itself.
bearer_scheme = HTTPBearer(auto_error=False)


def get_current_identity(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    identity: IdentityProvider = Depends(get_identity_provider),
) -> IdentityUser | None:
    """
    Resolve the caller from a Firebase ID token.

    Returns:
        IdentityUser if a bearer token is present and valid, else None.

    Raises:
        InvalidToken(401): token malformed, expired, revoked or badly signed.
    """
    if credentials is None:
        return None
    return identity.verify_token(credentials.credentials)


def require_auth(identity_user: IdentityUser | None = Depends(get_current_identity)) -> IdentityUser:
    """
    Enforce a verified identity token.

    Raises:
        AuthenticationError(401): if no token was sent.
    """
    if identity_user is None:
        raise AuthenticationError("Authentication required")
    return identity_user


def require_profile(
    identity_user: IdentityUser = Depends(require_auth),
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
) -> Profile:
    """
    Enforce a verified token AND an active profile.

    A missing profile is created on the spot (first authenticated request,
    or repair of a signup whose profile insert failed).

    Raises:
        ForbiddenError(403): profile was soft-deleted.
    """
    return service.ensure_profile(session, identity_user)


def require_admin(
    profile: Profile = Depends(require_profile),
    identity_user: IdentityUser = Depends(require_auth),
) -> Profile:
    """
    Enforce admin role, from the profile or an `admin`/`role` custom claim.

    Raises:
        ForbiddenError(403): if the caller is not an admin.
    """
    claims = identity_user.claims
    if profile.role != "admin" and claims.get("role") != "admin" and claims.get("admin") is not True:
        raise ForbiddenError("Admin access required")
    return profile
