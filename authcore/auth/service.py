"""
AuthCore - Auth Session Service

Orchestrates the authentication lifecycle:
- login: verify credentials, open a session, issue tokens
- refresh: exchange a live refresh token for a new access token
- validate: check an access token and that its session is still open
- logout / logout_all: revoke one or every session of a user

Security:
- Login failures never reveal whether the email or the password was wrong
- Access tokens are stateless but bound to a session id, so logout
  takes effect immediately
- Refresh tokens are not rotated; they stay valid until
  created_at + refresh TTL (absolute, not sliding)
"""

from collections import Counter
from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel

from authcore.auth.exceptions import (
    ExpiredRefreshToken,
    ExpiredToken,
    InvalidCredentials,
    InvalidRefreshToken,
    InvalidToken,
    SessionRevoked,
)
from authcore.auth.generator import (
    ALPHANUMERIC,
    REFRESH_TOKEN_LENGTH,
    SESSION_ID_LENGTH,
    SESSION_ID_PREFIX,
)
from authcore.auth.models import Session, User, UserProfile, UserRole
from authcore.auth.password import (
    DEFAULT_WORK_FACTOR,
    MAX_PASSWORD_BYTES,
    dummy_hash,
    exceeds_max_length,
    hash_password,
    needs_rehash,
    verify_password,
)
from authcore.auth.ports import Clock, CredentialStore, TokenCodec, TokenGenerator
from authcore.auth.registry import SessionRegistry
from authcore.auth.tokens import (
    ACCESS_TOKEN_TYPE,
    TokenExpiredError,
    TokenSignatureError,
    parse_access_claims,
)
from authcore.config import SessionPolicy
from authcore.domain.email import Email
from authcore.domain.exceptions import DomainException, WeakPassword
from authcore.logging import get_logger


logger = get_logger(__name__)

UNKNOWN_USER_AGENT = "Unknown"


def isoformat(value: datetime) -> str:
    return value.isoformat()


# =============================================================================
# RESULT PAYLOADS
# =============================================================================

class TokenBundle(BaseModel):
    access_token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int


class SessionDescriptor(BaseModel):
    session_id: str
    created_at: str
    expires_at: str


class LoginResult(BaseModel):
    user: UserProfile
    tokens: TokenBundle
    session: SessionDescriptor


class RefreshResult(BaseModel):
    access_token: str
    expires_in: int
    user: UserProfile


class ValidatedSession(BaseModel):
    session_id: str
    last_used: str


class ValidationResult(BaseModel):
    user: UserProfile
    session: ValidatedSession


class SessionInfo(BaseModel):
    """Full session metadata, without the refresh token."""
    session_id: str
    user_id: str
    created_at: str
    last_used: str
    expires_at: str
    ip_address: Optional[str]
    user_agent: str


class ActivityRecord(BaseModel):
    user_id: str
    session_id: str
    last_used: str
    ip_address: Optional[str]
    user_agent: str


class SessionStats(BaseModel):
    total_active_sessions: int
    user_session_counts: Dict[str, int]
    last_activity: List[ActivityRecord]


# =============================================================================
# SERVICE
# =============================================================================

class AuthSessionService:
    """
    Session/token lifecycle manager.

    Args:
        store: User lookups
        clock: Source of the current time
        generator: CSPRNG token source for session ids and refresh tokens
        codec: Signs and verifies access tokens
        registry: Session map (a fresh one if omitted)
        policy: Token lifetimes
        work_factor: bcrypt cost for provisioning and rehash on login
    """

    def __init__(
        self,
        store: CredentialStore,
        clock: Clock,
        generator: TokenGenerator,
        codec: TokenCodec,
        registry: Optional[SessionRegistry] = None,
        policy: Optional[SessionPolicy] = None,
        work_factor: int = DEFAULT_WORK_FACTOR,
    ):
        self.store = store
        self.clock = clock
        self.generator = generator
        self.codec = codec
        self.registry = registry if registry is not None else SessionRegistry()
        self.policy = policy or SessionPolicy()
        self.work_factor = work_factor

    @property
    def access_expires_in(self) -> int:
        return int(self.policy.access_ttl.total_seconds())

    @property
    def refresh_expires_in(self) -> int:
        return int(self.policy.refresh_ttl.total_seconds())

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def login(
        self,
        email: str,
        password: str,
        ip: Optional[str],
        user_agent: Optional[str] = None,
    ) -> LoginResult:
        """
        Authenticate a user and open a new session.

        Raises:
            InvalidCredentials: Unknown email, inactive account or wrong
                password; the three cases are indistinguishable to callers
        """
        user = self._find_user_for_login(email)

        if user is None:
            # Burn the same bcrypt cost as a real check
            verify_password(password, dummy_hash(self.work_factor))
            logger.info("auth.login.failure", reason="user_not_found", ip=ip)
            raise InvalidCredentials()

        if not verify_password(password, user.password_hash):
            logger.info("auth.login.failure", user_id=str(user.id), reason="invalid_password", ip=ip)
            raise InvalidCredentials()

        if not user.is_active:
            logger.info("auth.login.failure", user_id=str(user.id), reason="account_inactive", ip=ip)
            raise InvalidCredentials()

        if needs_rehash(user.password_hash, self.work_factor):
            self.store.update_password_hash(str(user.id), hash_password(password, self.work_factor))

        now = self.clock.now()
        self._drop_expired_sessions(now)
        session = self._open_session(user, now, ip, user_agent)
        access_token = self._issue_access_token(user, session.session_id)

        logger.info(
            "auth.login.success",
            user_id=session.user_id,
            session_id=session.session_id,
            role=user.role.value,
            ip=ip,
        )

        return LoginResult(
            user=UserProfile.from_user(user),
            tokens=TokenBundle(
                access_token=access_token,
                refresh_token=session.refresh_token,
                expires_in=self.access_expires_in,
                refresh_expires_in=self.refresh_expires_in,
            ),
            session=SessionDescriptor(
                session_id=session.session_id,
                created_at=isoformat(session.created_at),
                expires_at=isoformat(self._refresh_deadline(session)),
            ),
        )

    def _find_user_for_login(self, email: str) -> Optional[User]:
        try:
            normalized = Email(email)
        except DomainException:
            return None
        return self.store.find_by_email(normalized.value)

    def _open_session(
        self,
        user: User,
        now: datetime,
        ip: Optional[str],
        user_agent: Optional[str],
    ) -> Session:
        session = Session(
            session_id=SESSION_ID_PREFIX + self.generator.random_token(SESSION_ID_LENGTH, ALPHANUMERIC),
            user_id=str(user.id),
            refresh_token=self.generator.random_token(REFRESH_TOKEN_LENGTH, ALPHANUMERIC),
            created_at=now,
            last_used_at=now,
            ip_address=ip,
            user_agent=user_agent or UNKNOWN_USER_AGENT,
        )
        self.registry.add(session)
        return session

    def _issue_access_token(self, user: User, session_id: str) -> str:
        return self.codec.sign(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role.value,
                "sid": session_id,
                "type": ACCESS_TOKEN_TYPE,
            },
            self.policy.access_ttl,
        )

    def _refresh_deadline(self, session: Session) -> datetime:
        return session.created_at + self.policy.refresh_ttl

    def _active_user(self, user_id: str) -> Optional[User]:
        user = self.store.find_by_id(user_id)
        if user is None or not user.is_active:
            return None
        return user

    # -------------------------------------------------------------------------
    # Refresh
    # -------------------------------------------------------------------------

    def refresh_token(self, refresh_token: str, ip: Optional[str] = None) -> RefreshResult:
        """
        Mint a new access token from a live refresh token.

        The refresh token itself is returned unchanged to the client's
        keeping; it is not rotated.

        Raises:
            InvalidRefreshToken: No session holds the token, or its user
                is gone or inactive
            ExpiredRefreshToken: now > session.created_at + refresh TTL
        """
        session = self.registry.get_by_refresh_token(refresh_token)
        if session is None:
            logger.info("auth.refresh.failure", reason="session_not_found", ip=ip)
            raise InvalidRefreshToken()

        now = self.clock.now()
        if now > self._refresh_deadline(session):
            self.registry.remove(session.session_id)
            logger.info(
                "auth.refresh.failure",
                reason="refresh_token_expired",
                session_id=session.session_id,
                ip=ip,
            )
            raise ExpiredRefreshToken()

        user = self._active_user(session.user_id)
        if user is None:
            logger.info(
                "auth.refresh.failure",
                reason="user_unavailable",
                user_id=session.user_id,
                ip=ip,
            )
            raise InvalidRefreshToken()

        # A concurrent logout may have removed the session since the lookup
        if self.registry.touch_by_refresh_token(refresh_token, now) is None:
            logger.info("auth.refresh.failure", reason="session_revoked", session_id=session.session_id, ip=ip)
            raise InvalidRefreshToken()

        access_token = self._issue_access_token(user, session.session_id)

        logger.info("auth.refresh.success", user_id=session.user_id, session_id=session.session_id, ip=ip)

        return RefreshResult(
            access_token=access_token,
            expires_in=self.access_expires_in,
            user=UserProfile.from_user(user),
        )

    # -------------------------------------------------------------------------
    # Validation
    # -------------------------------------------------------------------------

    def validate_access_token(self, token: str) -> ValidationResult:
        """
        Verify an access token and that its session is still open.

        Raises:
            InvalidToken: Bad signature, malformed claims, wrong token
                type, or the user is gone or inactive
            ExpiredToken: Token is past its exp claim
            SessionRevoked: The token's session was logged out
        """
        try:
            claims = self.codec.verify(token)
            payload = parse_access_claims(claims)
        except TokenExpiredError:
            raise ExpiredToken()
        except TokenSignatureError as e:
            logger.debug("auth.validate.failure", reason="invalid_token", error=str(e))
            raise InvalidToken()

        session = self.registry.get(payload.sid)
        if session is None:
            logger.info("auth.validate.failure", reason="session_revoked", session_id=payload.sid)
            raise SessionRevoked()

        if session.user_id != payload.sub:
            logger.warning("auth.validate.failure", reason="session_user_mismatch", session_id=payload.sid)
            raise InvalidToken()

        user = self._active_user(payload.sub)
        if user is None:
            logger.info("auth.validate.failure", reason="user_unavailable", user_id=payload.sub)
            raise InvalidToken()

        # Only accepted tokens count as activity
        session = self.registry.touch(payload.sid, self.clock.now())
        if session is None:
            logger.info("auth.validate.failure", reason="session_revoked", session_id=payload.sid)
            raise SessionRevoked()

        return ValidationResult(
            user=UserProfile.from_user(user),
            session=ValidatedSession(
                session_id=session.session_id,
                last_used=isoformat(session.last_used_at),
            ),
        )

    # -------------------------------------------------------------------------
    # Logout
    # -------------------------------------------------------------------------

    def logout(self, session_id: str) -> bool:
        """
        Close one session. Idempotent.

        Returns:
            True if a session was removed, False if it was already gone
        """
        session = self.registry.remove(session_id)
        if session is None:
            logger.info("auth.logout.noop", session_id=session_id)
            return False
        logger.info("auth.logout", user_id=session.user_id, session_id=session_id)
        return True

    def logout_all(self, user_id: str) -> int:
        """
        Close every session of a user ("sign out everywhere").

        Returns:
            Number of sessions removed
        """
        removed = self.registry.remove_by_user(str(user_id))
        logger.info("auth.logout.all", user_id=str(user_id), sessions_invalidated=len(removed))
        return len(removed)

    # -------------------------------------------------------------------------
    # Introspection
    # -------------------------------------------------------------------------

    def purge_expired_sessions(self) -> int:
        """
        Drop sessions whose refresh token has expired.

        Runs on every login and before each introspection call, so the
        registry never reports or accumulates dead sessions.

        Returns:
            Number of sessions removed
        """
        return self._drop_expired_sessions(self.clock.now())

    def _drop_expired_sessions(self, now: datetime) -> int:
        expired = self.registry.remove_created_before(now - self.policy.refresh_ttl)
        if expired:
            logger.info("auth.sessions.expired", sessions_invalidated=len(expired))
        return len(expired)

    def get_session_stats(self) -> SessionStats:
        self.purge_expired_sessions()
        sessions = self.registry.all()
        counts = Counter(s.user_id for s in sessions)
        recent = sorted(sessions, key=lambda s: s.last_used_at, reverse=True)
        return SessionStats(
            total_active_sessions=len(sessions),
            user_session_counts=dict(counts),
            last_activity=[
                ActivityRecord(
                    user_id=s.user_id,
                    session_id=s.session_id,
                    last_used=isoformat(s.last_used_at),
                    ip_address=s.ip_address,
                    user_agent=s.user_agent,
                )
                for s in recent[: self.policy.activity_limit]
            ],
        )

    def get_active_sessions(self, user_id: Optional[str] = None) -> List[SessionInfo]:
        """
        List sessions with their metadata, optionally for one user.

        Refresh tokens are never included.
        """
        self.purge_expired_sessions()
        sessions = self.registry.for_user(str(user_id)) if user_id else self.registry.all()
        return [self._describe(s) for s in sorted(sessions, key=lambda s: s.created_at)]

    def _describe(self, session: Session) -> SessionInfo:
        return SessionInfo(
            session_id=session.session_id,
            user_id=session.user_id,
            created_at=isoformat(session.created_at),
            last_used=isoformat(session.last_used_at),
            expires_at=isoformat(self._refresh_deadline(session)),
            ip_address=session.ip_address,
            user_agent=session.user_agent,
        )

    def clear_all_sessions(self) -> int:
        """Drop every session. Administrative and test use only."""
        count = self.registry.clear()
        logger.warning("auth.sessions.cleared", sessions_invalidated=count)
        return count

    # -------------------------------------------------------------------------
    # Provisioning
    # -------------------------------------------------------------------------

    def create_test_user(
        self,
        email: str,
        password: str,
        role: UserRole = UserRole.USER,
        name: Optional[str] = None,
    ) -> UserProfile:
        """
        Provision a user (demo seeding, tests, admin endpoint).

        Raises:
            EmptyFieldException / InvalidFormatException: Bad email
            WeakPassword: Password longer than bcrypt accepts
            UserAlreadyExists: Email is taken
        """
        if exceeds_max_length(password):
            raise WeakPassword(f"at most {MAX_PASSWORD_BYTES} bytes allowed")
        address = Email(email)
        user = self.store.create_user(
            email=address.value,
            name=name or f"Test User {address.value}",
            password_hash=hash_password(password, self.work_factor),
            role=role,
        )
        logger.info("auth.user.created", user_id=str(user.id), role=user.role.value)
        return UserProfile.from_user(user)
