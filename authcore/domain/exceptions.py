"""
AuthCore - Domain Exceptions

Every domain error carries a stable machine-readable code and the UTC
time it was raised, for audit correlation.
"""

from datetime import datetime, timezone


class DomainException(Exception):
    """Base class for all domain errors."""

    code = "DOMAIN.ERROR"

    def __init__(self, message: str, code: str = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.code
        self.timestamp = datetime.now(timezone.utc)

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "error_code": self.code,
            "timestamp": self.timestamp.isoformat(),
        }


# =============================================================================
# VALUE OBJECT CONSTRUCTION
# =============================================================================

class EmptyFieldException(DomainException):
    """Raised when a required field is empty or blank."""

    def __init__(self, field_name: str):
        super().__init__(f"{field_name} cannot be empty", "EMPTY_FIELD")
        self.field_name = field_name


class InvalidFormatException(DomainException):
    """Raised when a value does not match its expected format."""

    def __init__(self, field_name: str, reason: str):
        super().__init__(f"Invalid {field_name}: {reason}", "INVALID_FORMAT")
        self.field_name = field_name


# =============================================================================
# USERS
# =============================================================================

class UserAlreadyExists(DomainException):
    def __init__(self, email: str):
        super().__init__(f"User already exists: {email}", "DOMAIN.USER.ALREADY_EXISTS")


# =============================================================================
# PASSWORD RESET
# =============================================================================

class UserNotFoundForPasswordReset(DomainException):
    def __init__(self, email: str):
        super().__init__(
            f"User not found for password reset: {email}",
            "DOMAIN.PASSWORD_RESET.USER_NOT_FOUND",
        )


class InvalidEmailForPasswordReset(DomainException):
    def __init__(self, email: str):
        super().__init__(
            f"Invalid email for password reset: {email}",
            "DOMAIN.PASSWORD_RESET.INVALID_EMAIL",
        )


class InvalidResetToken(DomainException):
    def __init__(self):
        super().__init__("Invalid password reset token", "DOMAIN.PASSWORD_RESET.INVALID_TOKEN")


class ExpiredResetToken(DomainException):
    def __init__(self):
        super().__init__("Password reset token has expired", "DOMAIN.PASSWORD_RESET.EXPIRED_TOKEN")


class ResetTokenAlreadyUsed(DomainException):
    def __init__(self):
        super().__init__(
            "Password reset token has already been used",
            "DOMAIN.PASSWORD_RESET.TOKEN_ALREADY_USED",
        )


class WeakPassword(DomainException):
    def __init__(self, reason: str):
        super().__init__(
            f"Password does not meet security requirements: {reason}",
            "DOMAIN.PASSWORD_RESET.WEAK_PASSWORD",
        )
