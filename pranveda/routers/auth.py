# pranveda/routers/auth.py
from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import EmailStr
from sqlmodel import Session

from pranveda.core.auth import require_admin, require_auth, require_profile
from pranveda.core.identity import IdentityUser
from pranveda.core.rate_limit import rate_limit
from pranveda.database import get_session
from pranveda.models.profile import Profile
from pranveda.repositories.progress_repo import ProgressRepository
from pranveda.repositories.session_repo import meditation_repository, workout_repository
from pranveda.repositories.stats_repo import StatsRepository
from pranveda.schemas.common import ApiResponse, ok
from pranveda.schemas.profile import (
    CheckUserRead,
    ClaimsUpdate,
    DeleteAccountRequest,
    ForgotPasswordRequest,
    IdentityRead,
    MeRead,
    PreferencesUpdate,
    ProfileRead,
    RefreshRead,
    RegisterRead,
    RegisterRequest,
    ResetPasswordRequest,
    SessionInfoRead,
    SignupRead,
    SignupRequest,
    TokenVerifyRead,
    UserListRead,
    UserStatsRead,
)
from pranveda.services.auth_service import AuthService, get_auth_service
from pranveda.services.progress_service import ProgressService

router = APIRouter(prefix="/auth", tags=["Auth"])

progress_service = ProgressService(
    ProgressRepository(),
    meditation_repository(),
    workout_repository(),
    StatsRepository(),
)

RESET_MESSAGE = "If the email exists, a password reset link has been sent"


# -------- Registration --------


@router.post(
    "/signup",
    response_model=ApiResponse[SignupRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("auth"))],
)
def signup(
    payload: SignupRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """
    Create a Firebase account and its profile.

    If the profile insert fails, the account is flagged and the profile is
    created on its first authenticated request.
    """
    result = service.signup(session, payload)
    message = "Account created" if not result["profile_pending"] else "Account created, profile pending"
    return ok(result, message)


@router.post(
    "/register",
    response_model=ApiResponse[RegisterRead],
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(rate_limit("auth"))],
)
def register(
    payload: RegisterRequest,
    response: Response,
    session: Session = Depends(get_session),
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    """
    Create the caller's profile (idempotent).

    Auth:
      - Requires a valid Firebase ID token.

    Returns 201 when the profile is created and 200 with the existing
    profile on repeat calls.
    """
    profile, created = service.register(session, identity_user, payload)
    if not created:
        response.status_code = status.HTTP_200_OK
    return ok(
        {"profile": profile, "created": created},
        "Profile created" if created else "Profile already exists",
    )


# -------- Self profile --------


@router.get("/me", response_model=ApiResponse[MeRead])
def read_me(
    session: Session = Depends(get_session),
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    """Return the identity and profile of the caller."""
    return ok(service.me(session, identity_user))


@router.put("/preferences", response_model=ApiResponse[ProfileRead])
def update_preferences(
    payload: PreferencesUpdate,
    session: Session = Depends(get_session),
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    """
    Update profile preferences (partial update).

    Notification and privacy settings are merged with the stored ones.
    """
    return ok(service.update_preferences(session, identity_user, payload), "Preferences updated")


@router.post("/verify-token", response_model=ApiResponse[TokenVerifyRead])
def verify_token(
    session: Session = Depends(get_session),
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.verify_token(session, identity_user))


@router.post("/refresh", response_model=ApiResponse[RefreshRead])
def refresh(
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    """Mint a Firebase custom token the client can exchange for a fresh ID token."""
    return ok(service.refresh(identity_user))


@router.post("/logout", response_model=ApiResponse[None])
def logout(identity_user: IdentityUser = Depends(require_auth)):
    """Stateless: the client discards its token."""
    return ok(None, "Logged out")


@router.get("/session", response_model=ApiResponse[SessionInfoRead])
def session_info(
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.session_info(identity_user))


@router.get("/stats", response_model=ApiResponse[UserStatsRead])
def user_stats(
    session: Session = Depends(get_session),
    profile: Profile = Depends(require_profile),
):
    return ok(progress_service.user_summary(session, profile))


@router.get("/check-user", response_model=ApiResponse[CheckUserRead])
def check_user(
    email: EmailStr = Query(...),
    service: AuthService = Depends(get_auth_service),
):
    return ok({"email": email, "exists": service.check_user(email)})


@router.delete(
    "/account",
    response_model=ApiResponse[None],
    dependencies=[Depends(rate_limit("strict"))],
)
def delete_account(
    payload: DeleteAccountRequest,
    session: Session = Depends(get_session),
    identity_user: IdentityUser = Depends(require_auth),
    service: AuthService = Depends(get_auth_service),
):
    """
    Soft-delete the caller's profile.

    Requires the account password as re-confirmation. The Firebase account
    itself is not removed.
    """
    service.delete_account(session, identity_user, payload.password)
    return ok(None, "Account deleted")


# -------- Password reset --------


@router.post(
    "/forgot-password",
    response_model=ApiResponse[None],
    dependencies=[Depends(rate_limit("password_reset"))],
)
def forgot_password(
    payload: ForgotPasswordRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    service.forgot_password(session, payload.email)
    return ok(None, RESET_MESSAGE)


@router.post(
    "/reset-password",
    response_model=ApiResponse[None],
    dependencies=[Depends(rate_limit("password_reset"))],
)
def reset_password(
    payload: ResetPasswordRequest,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    service.reset_password(session, payload.token, payload.new_password)
    return ok(None, "Password has been reset")


# -------- Admin endpoints --------


@router.get(
    "/admin/users",
    response_model=ApiResponse[UserListRead],
    dependencies=[Depends(require_admin)],
)
def list_users(
    page_size: int = Query(100, ge=1, le=1000),
    page_token: str | None = None,
    service: AuthService = Depends(get_auth_service),
):
    """List identity provider accounts (admin only)."""
    return ok(service.list_users(page_size, page_token))


@router.put(
    "/admin/users/{uid}/claims",
    response_model=ApiResponse[IdentityRead],
    dependencies=[Depends(require_admin)],
)
def update_claims(
    uid: str,
    payload: ClaimsUpdate,
    service: AuthService = Depends(get_auth_service),
):
    return ok(service.update_claims(uid, payload.claims), "Claims updated")


@router.delete(
    "/admin/users/{uid}",
    response_model=ApiResponse[None],
    dependencies=[Depends(require_admin)],
)
def delete_user(
    uid: str,
    session: Session = Depends(get_session),
    service: AuthService = Depends(get_auth_service),
):
    """Delete the Firebase account and soft-delete its profile (admin only)."""
    service.admin_delete_user(session, uid)
    return ok(None, "User deleted")
