"""
AuthCore - Password Reset Flow

Issues reset tokens and applies password changes.

A successful reset:
1. Checks and hashes the new password
2. Consumes the token (single use) and replaces the password hash
3. Drops the user's other outstanding reset tokens
4. Signs the user out of every session
"""

from authcore.auth.models import PasswordResetToken
from authcore.auth.password import MAX_PASSWORD_BYTES, exceeds_max_length, hash_password
from authcore.auth.ports import CredentialStore
from authcore.auth.reset_tokens import PasswordResetTokenManager
from authcore.auth.service import AuthSessionService
from authcore.domain.email import Email
from authcore.domain.exceptions import (
    DomainException,
    InvalidEmailForPasswordReset,
    InvalidResetToken,
    UserNotFoundForPasswordReset,
    WeakPassword,
)
from authcore.logging import get_logger


logger = get_logger(__name__)

MIN_PASSWORD_LENGTH = 8


class PasswordResetService:
    def __init__(
        self,
        store: CredentialStore,
        tokens: PasswordResetTokenManager,
        sessions: AuthSessionService,
    ):
        self.store = store
        self.tokens = tokens
        self.sessions = sessions

    def request_reset(self, email: str) -> PasswordResetToken:
        """
        Issue a reset token for an active account.

        Delivering the token is the caller's concern.

        Raises:
            InvalidEmailForPasswordReset: Malformed address
            UserNotFoundForPasswordReset: Unknown or inactive account
        """
        try:
            address = Email(email)
        except DomainException:
            raise InvalidEmailForPasswordReset(email)

        user = self.store.find_by_email(address.value)
        if user is None or not user.is_active:
            raise UserNotFoundForPasswordReset(address.value)

        token = self.tokens.create(str(user.id))
        logger.info(
            "auth.password_reset.issued",
            user_id=token.user_id,
            expires_at=token.expires_at.isoformat(),
        )
        return token

    def reset_password(self, token: str, new_password: str) -> int:
        """
        Change a password with a reset token.

        The password is checked and hashed before the token is consumed,
        so a rejected password leaves the token usable.

        Returns:
            Number of sessions closed for the user

        Raises:
            WeakPassword: New password shorter than MIN_PASSWORD_LENGTH or
                longer than bcrypt accepts
            InvalidResetToken / ExpiredResetToken / ResetTokenAlreadyUsed
            UserNotFoundForPasswordReset: Account was deactivated after the
                token was issued
        """
        if len(new_password) < MIN_PASSWORD_LENGTH:
            raise WeakPassword(f"at least {MIN_PASSWORD_LENGTH} characters required")
        if exceeds_max_length(new_password):
            raise WeakPassword(f"at most {MAX_PASSWORD_BYTES} bytes allowed")

        password_hash = hash_password(new_password, self.sessions.work_factor)
        consumed = self.tokens.consume(token)

        user = self.store.find_by_id(consumed.user_id)
        if user is None:
            logger.warning("auth.password_reset.failure", reason="user_not_found", user_id=consumed.user_id)
            raise InvalidResetToken()
        if not user.is_active:
            logger.info("auth.password_reset.failure", reason="account_inactive", user_id=consumed.user_id)
            raise UserNotFoundForPasswordReset(user.email)

        if not self.store.update_password_hash(consumed.user_id, password_hash):
            logger.warning("auth.password_reset.failure", reason="user_not_found", user_id=consumed.user_id)
            raise InvalidResetToken()

        self.tokens.revoke_for_user(consumed.user_id)
        closed = self.sessions.logout_all(consumed.user_id)

        logger.info("auth.password_reset.completed", user_id=consumed.user_id, sessions_invalidated=closed)
        return closed
