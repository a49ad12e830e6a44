"""
AuthCore - Authentication Models

SQLModel table for user accounts plus the in-memory records the
session lifecycle works with.

Security:
- Passwords stored as bcrypt hashes only
- UserProfile is the only user shape returned to callers
- All timestamps in UTC
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel
from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRole(str, Enum):
    """User roles embedded in the access token claim."""
    SUPER_ADMIN = "SUPER_ADMIN"
    MANAGER = "MANAGER"
    USER = "USER"


class User(SQLModel, table=True):
    """
    User account for authentication.

    Attributes:
        id: Unique identifier (UUIDv4)
        email: Login identifier, stored lower-cased (unique, indexed)
        name: Display name
        password_hash: bcrypt hash (never store plaintext)
        role: Role carried in access tokens
        is_active: Inactive users cannot login or refresh
    """
    __tablename__ = "users"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique user identifier"
    )
    email: str = Field(
        sa_column=Column(String(254), unique=True, index=True, nullable=False),
        description="User email address (login identifier)"
    )
    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Display name"
    )
    password_hash: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="bcrypt password hash"
    )
    role: UserRole = Field(
        sa_column=Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER),
        description="User role"
    )
    is_active: bool = Field(
        sa_column=Column(Boolean, nullable=False, default=True),
        description="Whether user can authenticate"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=utcnow),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow),
    )


class UserProfile(BaseModel):
    """Sanitized user projection. Never includes the password hash."""
    id: str
    email: str
    name: str
    role: UserRole

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(id=str(user.id), email=user.email, name=user.name, role=user.role)


class Session(BaseModel):
    """
    In-memory authentication session.

    The refresh token is the session's bearer credential; it stays
    valid until created_at + refresh TTL.

    Attributes:
        session_id: Opaque session identifier
        user_id: Owning user
        refresh_token: Opaque secret, unique across sessions
        created_at: Login time, start of the refresh TTL
        last_used_at: Last successful refresh or validation
        ip_address: Client IP at login
        user_agent: Client user-agent at login
    """
    session_id: str
    user_id: str
    refresh_token: str
    created_at: datetime
    last_used_at: datetime
    ip_address: Optional[str] = None
    user_agent: str = "Unknown"


class PasswordResetToken(BaseModel):
    """Single-use password reset token."""
    token: str
    user_id: str
    created_at: datetime
    expires_at: datetime
    used_at: Optional[datetime] = None

    class Config:
        frozen = True

    @property
    def is_used(self) -> bool:
        return self.used_at is not None
