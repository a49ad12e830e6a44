"""
AuthCore - Collaborator Contracts

Narrow interfaces the session lifecycle depends on. Concrete
implementations are injected through constructors.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Protocol

from authcore.auth.models import User, UserRole


class CredentialStore(Protocol):
    def find_by_email(self, email: str) -> Optional[User]: ...

    def find_by_id(self, user_id: str) -> Optional[User]: ...

    def create_user(
        self,
        email: str,
        name: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
        is_active: bool = True,
    ) -> User: ...

    def update_password_hash(self, user_id: str, password_hash: str) -> bool: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class TokenGenerator(Protocol):
    def random_token(self, length: int, alphabet: str = ...) -> str: ...


class TokenCodec(Protocol):
    def sign(self, claims: Dict[str, Any], ttl: timedelta) -> str: ...

    def verify(self, token: str) -> Dict[str, Any]: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
