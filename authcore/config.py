"""
AuthCore - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: SECRET_KEY must be overridden outside local development.
"""

from datetime import timedelta
from typing import List

from pydantic import BaseModel
from pydantic_settings import BaseSettings


DEFAULT_SECRET_KEY = "dev-only-insecure-secret-change-me-32chars"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        SECRET_KEY: JWT signing key for access tokens
        ACCESS_TOKEN_EXPIRE_MINUTES: Access token lifetime
        REFRESH_TOKEN_EXPIRE_DAYS: Refresh token lifetime, measured from login
        PASSWORD_RESET_TOKEN_EXPIRE_HOURS: Reset token lifetime
        SESSION_ACTIVITY_LIMIT: Entries returned in session stats activity list
        DATABASE_URL: SQLModel connection string for the user table
        ALLOWED_ORIGINS: CORS allowed origins
        SEED_DEMO_USERS: Provision the demo accounts at startup
    """

    # Security
    SECRET_KEY: str = DEFAULT_SECRET_KEY
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 15  # Short-lived tokens
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    PASSWORD_RESET_TOKEN_EXPIRE_HOURS: int = 1
    BCRYPT_WORK_FACTOR: int = 12

    # Sessions
    SESSION_ACTIVITY_LIMIT: int = 5

    # Database (PostgreSQL for production, SQLite for development)
    DATABASE_URL: str = "sqlite:///./authcore.db"

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000"]

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Development
    SEED_DEMO_USERS: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


class SessionPolicy(BaseModel):
    """Lifetimes the session service works with."""
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)
    activity_limit: int = 5

    class Config:
        frozen = True

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SessionPolicy":
        return cls(
            access_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            activity_limit=settings.SESSION_ACTIVITY_LIMIT,
        )


settings = Settings()
