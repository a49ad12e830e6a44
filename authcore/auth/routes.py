"""
AuthCore - Authentication Routes

API endpoints for the session lifecycle:
- POST   /auth/login                     - Authenticate and create session
- POST   /auth/refresh                   - Exchange refresh token for access token
- POST   /auth/logout                    - Invalidate session (or all sessions)
- GET    /auth/me                        - Current user and session
- GET    /auth/sessions                  - Current user's sessions
- POST   /auth/password-reset/request    - Issue a reset token
- POST   /auth/password-reset/confirm    - Change password with a reset token
- GET    /auth/admin/sessions            - All sessions (SUPER_ADMIN)
- GET    /auth/admin/sessions/stats      - Session statistics (SUPER_ADMIN)
- DELETE /auth/admin/sessions            - Clear all sessions (SUPER_ADMIN)
- POST   /auth/users                     - Provision a user (SUPER_ADMIN)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Request, status

from authcore.auth.dependencies import (
    AuthenticatedUser,
    get_auth_service,
    get_current_user,
    get_password_reset_service,
    require_role,
    unauthorized,
)
from authcore.auth.exceptions import InvalidCredentials, InvalidRefreshToken, ExpiredRefreshToken
from authcore.auth.models import UserProfile, UserRole
from authcore.auth.password_reset import PasswordResetService
from authcore.auth.schemas import (
    ActiveSessionsResponse,
    ClearSessionsResponse,
    CreateUserRequest,
    ErrorResponse,
    LoginRequest,
    LogoutRequest,
    LogoutResponse,
    MeResponse,
    MessageResponse,
    PasswordResetConfirm,
    PasswordResetRequest,
    RefreshRequest,
)
from authcore.auth.service import (
    AuthSessionService,
    LoginResult,
    RefreshResult,
    SessionStats,
    ValidatedSession,
)
from authcore.domain.exceptions import InvalidEmailForPasswordReset, UserNotFoundForPasswordReset
from authcore.logging import get_logger


logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])

RESET_REQUESTED_MESSAGE = "If the account exists, a password reset has been issued"


def get_client_ip(request: Request) -> str:
    """Extract client IP from request."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def get_user_agent(request: Request) -> Optional[str]:
    """Extract user agent from request."""
    agent = request.headers.get("User-Agent")
    return agent[:512] if agent else None


@router.post(
    "/login",
    response_model=LoginResult,
    responses={401: {"model": ErrorResponse}},
    summary="Authenticate user and create session",
)
async def login(
    request: Request,
    credentials: LoginRequest,
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Authenticate with email and password.

    Returns the user projection, an access/refresh token pair and the
    new session descriptor.

    Raises:
        401: Invalid credentials (unknown email, wrong password or
            inactive account, indistinguishably)
    """
    try:
        return service.login(
            credentials.email,
            credentials.password,
            ip=get_client_ip(request),
            user_agent=get_user_agent(request),
        )
    except InvalidCredentials as e:
        raise unauthorized(e.message)


@router.post(
    "/refresh",
    response_model=RefreshResult,
    responses={401: {"model": ErrorResponse}},
    summary="Refresh access token",
)
async def refresh(
    request: Request,
    body: RefreshRequest,
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Exchange a refresh token for a new access token.

    The refresh token is not rotated. Unknown and expired tokens share
    the same 401 response.
    """
    try:
        return service.refresh_token(body.refresh_token, ip=get_client_ip(request))
    except (InvalidRefreshToken, ExpiredRefreshToken):
        raise unauthorized("Invalid refresh token")


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Invalidate current session",
)
async def logout(
    user: AuthenticatedUser = Depends(get_current_user),
    body: Optional[LogoutRequest] = None,
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Invalidate the current session, or all of the user's sessions with
    all_sessions=true. Access tokens bound to them stop working at once.
    """
    if body and body.all_sessions:
        count = service.logout_all(user.user_id)
        return LogoutResponse(message="All sessions invalidated", sessions_invalidated=count)

    removed = service.logout(user.session_id)
    return LogoutResponse(message="Session invalidated", sessions_invalidated=int(removed))


@router.get(
    "/me",
    response_model=MeResponse,
    summary="Get current user information",
)
async def get_me(user: AuthenticatedUser = Depends(get_current_user)):
    return MeResponse(
        user=user.user,
        session=ValidatedSession(session_id=user.session_id, last_used=user.last_used),
    )


@router.get(
    "/sessions",
    response_model=ActiveSessionsResponse,
    summary="List the current user's sessions",
)
async def list_sessions(
    user: AuthenticatedUser = Depends(get_current_user),
    service: AuthSessionService = Depends(get_auth_service),
):
    sessions = service.get_active_sessions(user_id=user.user_id)
    return ActiveSessionsResponse(sessions=sessions, total=len(sessions))


# =============================================================================
# PASSWORD RESET
# =============================================================================

@router.post(
    "/password-reset/request",
    response_model=MessageResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Request a password reset",
)
async def request_password_reset(
    body: PasswordResetRequest,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Issue a reset token for the account, if it exists.

    The response is identical whether or not the account exists, so the
    endpoint cannot be used to enumerate users. Token delivery is out of
    this service's hands.
    """
    try:
        reset_service.request_reset(body.email)
    except (UserNotFoundForPasswordReset, InvalidEmailForPasswordReset) as e:
        logger.info("auth.password_reset.ignored", error_code=e.code)
    return MessageResponse(message=RESET_REQUESTED_MESSAGE)


@router.post(
    "/password-reset/confirm",
    response_model=LogoutResponse,
    responses={400: {"model": ErrorResponse}, 422: {"model": ErrorResponse}},
    summary="Set a new password with a reset token",
)
async def confirm_password_reset(
    body: PasswordResetConfirm,
    reset_service: PasswordResetService = Depends(get_password_reset_service),
):
    """
    Change the password. All sessions of the user are closed.

    Token and password errors are rendered by the domain error handler.
    """
    closed = reset_service.reset_password(body.token, body.new_password)
    return LogoutResponse(message="Password has been reset", sessions_invalidated=closed)


# =============================================================================
# ADMINISTRATION
# =============================================================================

@router.get(
    "/admin/sessions",
    response_model=ActiveSessionsResponse,
    summary="List all active sessions (admin only)",
)
async def list_all_sessions(
    user: AuthenticatedUser = Depends(require_role(UserRole.SUPER_ADMIN)),
    service: AuthSessionService = Depends(get_auth_service),
):
    sessions = service.get_active_sessions()
    return ActiveSessionsResponse(sessions=sessions, total=len(sessions))


@router.get(
    "/admin/sessions/stats",
    response_model=SessionStats,
    summary="Session statistics (admin only)",
)
async def session_stats(
    user: AuthenticatedUser = Depends(require_role(UserRole.SUPER_ADMIN)),
    service: AuthSessionService = Depends(get_auth_service),
):
    return service.get_session_stats()


@router.delete(
    "/admin/sessions",
    response_model=ClearSessionsResponse,
    summary="Clear every session (admin only)",
)
async def clear_sessions(
    user: AuthenticatedUser = Depends(require_role(UserRole.SUPER_ADMIN)),
    service: AuthSessionService = Depends(get_auth_service),
):
    return ClearSessionsResponse(sessions_cleared=service.clear_all_sessions())


@router.post(
    "/users",
    response_model=UserProfile,
    status_code=status.HTTP_201_CREATED,
    responses={409: {"model": ErrorResponse}},
    summary="Create new user (admin only)",
)
async def create_user(
    body: CreateUserRequest,
    user: AuthenticatedUser = Depends(require_role(UserRole.SUPER_ADMIN)),
    service: AuthSessionService = Depends(get_auth_service),
):
    """
    Provision a user account. Duplicate emails yield 409.
    """
    return service.create_test_user(body.email, body.password, role=body.role, name=body.name)
