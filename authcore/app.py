"""
AuthCore - FastAPI Application Entrypoint

This module initializes the FastAPI application with:
- Structured logging
- CORS and security middleware
- Authentication routes and domain error handlers
- Database lifecycle and service wiring

Services are built once per process and stored on app.state.
"""

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.engine import Engine

from authcore.auth.database import get_engine, init_db, get_session_factory
from authcore.auth.generator import SecureTokenGenerator
from authcore.auth.models import UserRole
from authcore.auth.password_reset import PasswordResetService
from authcore.auth.ports import SystemClock
from authcore.auth.reset_tokens import PasswordResetTokenManager
from authcore.auth.routes import router as auth_router
from authcore.auth.service import AuthSessionService
from authcore.auth.store import SQLCredentialStore
from authcore.auth.tokens import JWTTokenCodec
from authcore.config import DEFAULT_SECRET_KEY, SessionPolicy, Settings, settings
from authcore.domain.exceptions import UserAlreadyExists
from authcore.gateway.errors import register_exception_handlers
from authcore.gateway.middleware import SecurityMiddleware
from authcore.logging import configure_logging, get_logger


logger = get_logger(__name__)

VERSION = "0.1.0"

# Demo accounts provisioned when SEED_DEMO_USERS is set
DEMO_USERS = [
    ("admin@demo.com", "secret123", UserRole.SUPER_ADMIN, "Admin User"),
    ("user@demo.com", "secret123", UserRole.USER, "Regular User"),
]


def build_services(app: FastAPI, engine: Engine, config: Settings, clock=None) -> None:
    """
    Wire store, clock, generator and codec into the services.

    Args:
        app: Application whose state receives the services
        engine: Engine holding the users table
        config: Settings to derive lifetimes and secrets from
        clock: Override the system clock (tests)
    """
    clock = clock or SystemClock()
    generator = SecureTokenGenerator()
    store = SQLCredentialStore(get_session_factory(engine))
    codec = JWTTokenCodec(config.SECRET_KEY, config.JWT_ALGORITHM, clock)

    auth_service = AuthSessionService(
        store=store,
        clock=clock,
        generator=generator,
        codec=codec,
        policy=SessionPolicy.from_settings(config),
        work_factor=config.BCRYPT_WORK_FACTOR,
    )
    reset_tokens = PasswordResetTokenManager(
        generator,
        clock,
        validity=timedelta(hours=config.PASSWORD_RESET_TOKEN_EXPIRE_HOURS),
    )

    app.state.db_engine = engine
    app.state.credential_store = store
    app.state.auth_service = auth_service
    app.state.reset_tokens = reset_tokens
    app.state.password_reset_service = PasswordResetService(store, reset_tokens, auth_service)


def seed_demo_users(service: AuthSessionService) -> int:
    """Provision DEMO_USERS, skipping existing accounts. Returns the number created."""
    created = 0
    for email, password, role, name in DEMO_USERS:
        try:
            service.create_test_user(email, password, role=role, name=name)
            created += 1
        except UserAlreadyExists:
            logger.info("seed.user.exists", email=email)
    return created


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
        - Configure logging
        - Create the user table and wire services
        - Seed demo users when enabled

    Shutdown:
        - Drop in-memory sessions and dispose the engine
    """
    configure_logging(settings.LOG_LEVEL, settings.LOG_JSON)

    if settings.SECRET_KEY == DEFAULT_SECRET_KEY:
        logger.warning("config.insecure_secret_key", hint="set SECRET_KEY in the environment")

    engine = get_engine(settings.DATABASE_URL)
    init_db(engine)
    build_services(app, engine, settings)

    if settings.SEED_DEMO_USERS:
        created = seed_demo_users(app.state.auth_service)
        logger.info("seed.completed", users_created=created)

    logger.info("app.started", version=VERSION)

    yield

    app.state.auth_service.clear_all_sessions()
    engine.dispose()


app = FastAPI(
    title="AuthCore",
    description="Authentication, session and password-reset backend",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
)

app.add_middleware(SecurityMiddleware)

register_exception_handlers(app)

app.include_router(auth_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    """Service status and active session count."""
    service = getattr(app.state, "auth_service", None)
    return {
        "status": "healthy" if service is not None else "starting",
        "version": VERSION,
        "active_sessions": service.get_session_stats().total_active_sessions if service is not None else 0,
    }


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "AuthCore",
        "version": VERSION,
        "docs": "/docs",
        "health": "/health",
    }
