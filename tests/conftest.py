"""
AuthCore - Test Configuration

Pytest fixtures for authentication testing.
Provides a test database, a controllable clock, wired services,
a test client and user fixtures.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Generator

from fastapi.testclient import TestClient
from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from authcore.app import app, build_services
from authcore.auth.database import get_session_factory
from authcore.auth.generator import SecureTokenGenerator
from authcore.auth.models import UserProfile, UserRole
from authcore.auth.password_reset import PasswordResetService
from authcore.auth.reset_tokens import PasswordResetTokenManager
from authcore.auth.service import AuthSessionService
from authcore.auth.store import SQLCredentialStore
from authcore.auth.tokens import JWTTokenCodec
from authcore.config import SessionPolicy, Settings


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_SECRET_KEY = "test-secret-key-for-unit-tests-only-32"

# Minimum bcrypt cost keeps the suite fast
TEST_WORK_FACTOR = 4

TEST_SETTINGS = Settings(
    SECRET_KEY=TEST_SECRET_KEY,
    BCRYPT_WORK_FACTOR=TEST_WORK_FACTOR,
    DATABASE_URL=TEST_DATABASE_URL,
)

ALICE_PASSWORD = "Secret123!"
BOB_PASSWORD = "BobPass123!"
ADMIN_PASSWORD = "AdminPass123!"


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self._now = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)

    def now(self) -> datetime:
        return self._now

    def advance(self, **kwargs) -> datetime:
        self._now = self._now + timedelta(**kwargs)
        return self._now


@pytest.fixture(scope="function")
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture(scope="function")
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Import models to register them
    from authcore.auth.models import User  # noqa: F401

    SQLModel.metadata.create_all(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def store(test_engine) -> SQLCredentialStore:
    return SQLCredentialStore(get_session_factory(test_engine))


@pytest.fixture(scope="function")
def codec(clock) -> JWTTokenCodec:
    return JWTTokenCodec(TEST_SECRET_KEY, "HS256", clock)


@pytest.fixture(scope="function")
def generator() -> SecureTokenGenerator:
    return SecureTokenGenerator()


@pytest.fixture(scope="function")
def service(store, clock, generator, codec) -> AuthSessionService:
    """Session service with default lifetimes (15 min access, 7 day refresh)."""
    return AuthSessionService(
        store=store,
        clock=clock,
        generator=generator,
        codec=codec,
        policy=SessionPolicy(),
        work_factor=TEST_WORK_FACTOR,
    )


@pytest.fixture(scope="function")
def reset_tokens(generator, clock) -> PasswordResetTokenManager:
    return PasswordResetTokenManager(generator, clock)


@pytest.fixture(scope="function")
def reset_service(store, reset_tokens, service) -> PasswordResetService:
    return PasswordResetService(store, reset_tokens, service)


@pytest.fixture(scope="function")
def alice(service) -> UserProfile:
    return service.create_test_user("alice@example.com", ALICE_PASSWORD, name="Alice")


@pytest.fixture(scope="function")
def bob(service) -> UserProfile:
    return service.create_test_user("bob@example.com", BOB_PASSWORD, name="Bob")


@pytest.fixture(scope="function")
def admin(service) -> UserProfile:
    return service.create_test_user(
        "admin@example.com", ADMIN_PASSWORD, role=UserRole.SUPER_ADMIN, name="Admin"
    )


@pytest.fixture(scope="function")
def inactive_user(service, store) -> UserProfile:
    user = service.create_test_user("inactive@example.com", "InactivePass123", name="Inactive")
    store.set_active(user.id, False)
    return user


@pytest.fixture(scope="function")
def client(test_engine, clock) -> Generator[TestClient, None, None]:
    """
    Test client over the shared app, wired to the test database.

    The lifespan is not entered, so the production engine is never built.
    """
    build_services(app, test_engine, TEST_SETTINGS, clock=clock)
    yield TestClient(app)
    app.state.auth_service.clear_all_sessions()


def login_user(client: TestClient, email: str, password: str) -> dict:
    """Helper function to login and return the response payload."""
    response = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    return response.json() if response.status_code == 200 else None


def auth_headers(access_token: str) -> dict:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {access_token}"}
