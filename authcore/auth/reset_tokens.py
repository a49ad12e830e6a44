"""
AuthCore - Password Reset Tokens

Creates, expires and consumes single-use reset tokens.

Security:
- 32 symbols drawn from a 62-symbol alphabet with a CSPRNG
- Absolute expiry (1 hour by default), never extended
- Consumption is atomic: a token can be used exactly once
"""

from datetime import timedelta
from threading import RLock
from typing import Dict, Optional

from authcore.auth.generator import ALPHANUMERIC, RESET_TOKEN_LENGTH
from authcore.auth.models import PasswordResetToken
from authcore.auth.ports import Clock, TokenGenerator
from authcore.domain.exceptions import (
    ExpiredResetToken,
    InvalidResetToken,
    ResetTokenAlreadyUsed,
)


TOKEN_VALIDITY = timedelta(hours=1)


class PasswordResetTokenManager:
    """Owns the map of outstanding reset tokens."""

    def __init__(
        self,
        generator: TokenGenerator,
        clock: Clock,
        validity: timedelta = TOKEN_VALIDITY,
    ):
        self._generator = generator
        self._clock = clock
        self._validity = validity
        self._lock = RLock()
        self._tokens: Dict[str, PasswordResetToken] = {}

    def create(self, user_id: str) -> PasswordResetToken:
        """
        Issue a new reset token for a user.

        Older outstanding tokens of the same user stay valid until they
        expire or a reset succeeds. Expired tokens are purged first, so
        the map holds at most one validity window of tokens.
        """
        now = self._clock.now()
        with self._lock:
            self.purge_expired()
            value = self._generator.random_token(RESET_TOKEN_LENGTH, ALPHANUMERIC)
            while value in self._tokens:
                value = self._generator.random_token(RESET_TOKEN_LENGTH, ALPHANUMERIC)
            token = PasswordResetToken(
                token=value,
                user_id=user_id,
                created_at=now,
                expires_at=now + self._validity,
            )
            self._tokens[value] = token
        return token

    def is_expired(self, token: PasswordResetToken) -> bool:
        return self._clock.now() > token.expires_at

    def get(self, value: str) -> Optional[PasswordResetToken]:
        with self._lock:
            return self._tokens.get(value)

    def consume(self, value: str) -> PasswordResetToken:
        """
        Mark a token as used.

        Raises:
            InvalidResetToken: Unknown token
            ResetTokenAlreadyUsed: Token was consumed before
            ExpiredResetToken: Token is past its expiry
        """
        with self._lock:
            token = self._tokens.get(value)
            if token is None:
                raise InvalidResetToken()
            if token.is_used:
                raise ResetTokenAlreadyUsed()
            if self.is_expired(token):
                raise ExpiredResetToken()
            consumed = token.model_copy(update={"used_at": self._clock.now()})
            self._tokens[value] = consumed
            return consumed

    def revoke_for_user(self, user_id: str) -> int:
        """Drop every unused token of a user. Returns the number dropped."""
        with self._lock:
            doomed = [
                value for value, token in self._tokens.items()
                if token.user_id == user_id and not token.is_used
            ]
            for value in doomed:
                del self._tokens[value]
            return len(doomed)

    def purge_expired(self) -> int:
        """
        Remove expired tokens.

        Runs on every create. Used tokens are removed once expired,
        so a replay inside the validity window still reports
        ResetTokenAlreadyUsed.
        """
        with self._lock:
            doomed = [value for value, token in self._tokens.items() if self.is_expired(token)]
            for value in doomed:
                del self._tokens[value]
            return len(doomed)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tokens)
