"""
AuthCore - Authentication Errors

Failures raised by the session lifecycle. Messages are deliberately
generic; the precise reason is logged, not returned.
"""

from authcore.domain.exceptions import DomainException


class AuthenticationError(DomainException):
    """Base class for login, refresh and token validation failures."""
    code = "AUTH.ERROR"


class InvalidCredentials(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid credentials", "AUTH.INVALID_CREDENTIALS")


class InvalidRefreshToken(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid refresh token", "AUTH.INVALID_REFRESH_TOKEN")


class ExpiredRefreshToken(AuthenticationError):
    def __init__(self):
        super().__init__("Refresh token has expired", "AUTH.EXPIRED_REFRESH_TOKEN")


class InvalidToken(AuthenticationError):
    def __init__(self):
        super().__init__("Invalid access token", "AUTH.INVALID_TOKEN")


class ExpiredToken(AuthenticationError):
    def __init__(self):
        super().__init__("Access token has expired", "AUTH.EXPIRED_TOKEN")


class SessionRevoked(AuthenticationError):
    def __init__(self):
        super().__init__("Session has been revoked", "AUTH.SESSION_REVOKED")
