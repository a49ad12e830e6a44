"""
AuthCore - Authentication Request/Response Schemas

Pydantic models for API request validation and response serialization.
Service result payloads are returned as-is where they fit.
"""

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from authcore.auth.models import UserProfile, UserRole
from authcore.auth.password import MAX_PASSWORD_BYTES, exceeds_max_length
from authcore.auth.service import ValidatedSession, SessionInfo
from authcore.domain.email import Email
from authcore.domain.exceptions import DomainException


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: str = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


class RefreshRequest(BaseModel):
    """Request body for POST /auth/refresh."""
    refresh_token: str = Field(..., min_length=1, description="Refresh token")


class LogoutRequest(BaseModel):
    """Request body for POST /auth/logout (optional)."""
    all_sessions: bool = Field(
        default=False,
        description="Invalidate all sessions (logout everywhere)"
    )


class LogoutResponse(BaseModel):
    """Response body for logout."""
    message: str = Field(default="Session invalidated")
    sessions_invalidated: int = Field(default=1)


class MeResponse(BaseModel):
    """Response body for GET /auth/me."""
    user: UserProfile
    session: ValidatedSession


class ActiveSessionsResponse(BaseModel):
    """Response body for session listings."""
    sessions: list[SessionInfo]
    total: int


class PasswordResetRequest(BaseModel):
    """Request body for POST /auth/password-reset/request."""
    email: str


class PasswordResetConfirm(BaseModel):
    """Request body for POST /auth/password-reset/confirm."""
    token: str = Field(..., min_length=1)
    new_password: str


class MessageResponse(BaseModel):
    message: str


class ClearSessionsResponse(BaseModel):
    sessions_cleared: int


class CreateUserRequest(BaseModel):
    """Request body for POST /auth/users (admin only)."""
    email: str
    password: str = Field(..., min_length=8)
    name: Optional[str] = None
    role: UserRole = Field(default=UserRole.USER)

    @field_validator("email")
    @classmethod
    def email_format(cls, v):
        try:
            return Email(v).value
        except DomainException as e:
            raise ValueError(str(e))

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, v):
        if exceeds_max_length(v):
            raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
        return v


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    error_code: Optional[str] = None
    timestamp: Optional[str] = None
