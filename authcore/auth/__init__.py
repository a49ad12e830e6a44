"""
AuthCore - Authentication Package

Session and token lifecycle:
- Hybrid JWT access tokens + in-memory sessions
- Opaque, non-rotating refresh tokens
- Single-use password reset tokens
- bcrypt password hashing
"""

from authcore.auth.models import User, UserProfile, UserRole, Session
from authcore.auth.service import AuthSessionService
from authcore.auth.registry import SessionRegistry
from authcore.auth.reset_tokens import PasswordResetTokenManager
from authcore.auth.password_reset import PasswordResetService

__all__ = [
    "User",
    "UserProfile",
    "UserRole",
    "Session",
    "AuthSessionService",
    "SessionRegistry",
    "PasswordResetTokenManager",
    "PasswordResetService",
]
