"""
AuthCore - Security Dependencies

FastAPI dependencies for authentication.

Usage:
    @router.get("/protected")
    async def protected_route(user: AuthenticatedUser = Depends(get_current_user)):
        ...

    @router.get("/admin-only")
    async def admin_route(user: AuthenticatedUser = Depends(require_role(UserRole.SUPER_ADMIN))):
        ...

Security:
- Every protected request validates the JWT AND its session
- Token failures share one 401 detail; the precise code is only logged
"""

from typing import Optional

from fastapi import HTTPException, status, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel

from authcore.auth.exceptions import AuthenticationError
from authcore.auth.models import UserProfile, UserRole
from authcore.auth.password_reset import PasswordResetService
from authcore.auth.service import AuthSessionService
from authcore.logging import get_logger


logger = get_logger(__name__)

# HTTP Bearer scheme for JWT extraction
security = HTTPBearer(auto_error=False)

INVALID_TOKEN_DETAIL = "Invalid or expired token"


class AuthenticatedUser(BaseModel):
    """
    Represents a validated, authenticated request.

    Available in route handlers via Depends(get_current_user).
    """
    user: UserProfile
    session_id: str
    last_used: str

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def role(self) -> UserRole:
        return self.user.role


def get_auth_service(request: Request) -> AuthSessionService:
    return request.app.state.auth_service


def get_password_reset_service(request: Request) -> PasswordResetService:
    return request.app.state.password_reset_service


def unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    service: AuthSessionService = Depends(get_auth_service),
) -> AuthenticatedUser:
    """
    Validate request authentication and return current user.

    1. Extract JWT from Authorization header
    2. Validate signature and expiry
    3. Check the token's session is still registered

    Raises:
        HTTPException 401: Missing, invalid, expired or revoked credentials
    """
    if not credentials:
        raise unauthorized("Missing authentication token")

    try:
        result = service.validate_access_token(credentials.credentials)
    except AuthenticationError as e:
        logger.info("auth.request.rejected", error_code=e.code)
        raise unauthorized(INVALID_TOKEN_DETAIL)

    return AuthenticatedUser(
        user=result.user,
        session_id=result.session.session_id,
        last_used=result.session.last_used,
    )


def require_role(role: UserRole):
    """
    Dependency factory requiring a specific role.

    Raises:
        HTTPException 403: If the user's role differs
    """
    async def dependency(user: AuthenticatedUser = Depends(get_current_user)) -> AuthenticatedUser:
        if user.role != role:
            logger.info("auth.request.forbidden", user_id=user.user_id, required_role=role.value)
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Requires role: {role.value}",
            )
        return user

    return dependency
