"""
AuthCore - Database Configuration

SQLModel engine setup for the user table.
Supports PostgreSQL (production) and SQLite (development, tests).

Usage:
    from authcore.auth.database import get_engine, init_db

    engine = get_engine()
    init_db(engine)  # Creates tables
"""

from typing import Optional

from sqlmodel import SQLModel, Session, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool

from authcore.config import settings


def get_engine(database_url: Optional[str] = None, echo: bool = False) -> Engine:
    """
    Create SQLAlchemy engine with appropriate configuration.

    Args:
        database_url: Override settings.DATABASE_URL
        echo: Log SQL statements
    """
    url = database_url or settings.DATABASE_URL

    if url.startswith("sqlite"):
        return create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )

    # PostgreSQL configuration with connection pooling
    return create_engine(
        url,
        echo=echo,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
    )


def init_db(engine: Engine) -> None:
    """
    Create all tables. Safe to call multiple times.
    """
    # Import models to register them with SQLModel
    from authcore.auth.models import User  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session_factory(engine: Engine):
    """
    Create a session factory bound to engine.

    Returns:
        Callable that creates new database sessions
    """
    def session_factory() -> Session:
        return Session(engine)

    return session_factory
