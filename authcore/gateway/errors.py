"""
AuthCore - Error Handlers

Renders domain errors as {"detail", "error_code", "timestamp"} with a
status code chosen by error kind.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from authcore.auth.exceptions import AuthenticationError
from authcore.domain.exceptions import (
    DomainException,
    EmptyFieldException,
    ExpiredResetToken,
    InvalidFormatException,
    InvalidResetToken,
    ResetTokenAlreadyUsed,
    UserAlreadyExists,
    WeakPassword,
)
from authcore.logging import get_logger


logger = get_logger(__name__)

_STATUS_BY_ERROR = (
    (AuthenticationError, 401),
    (UserAlreadyExists, 409),
    (EmptyFieldException, 422),
    (InvalidFormatException, 422),
    (WeakPassword, 422),
    (InvalidResetToken, 400),
    (ExpiredResetToken, 400),
    (ResetTokenAlreadyUsed, 400),
)


def status_for(exc: DomainException) -> int:
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on the app."""

    @app.exception_handler(DomainException)
    async def handle_domain_error(request: Request, exc: DomainException):
        status_code = status_for(exc)
        logger.warning(
            "domain_error",
            path=request.url.path,
            method=request.method,
            status_code=status_code,
            error_code=exc.code,
        )
        headers = {"WWW-Authenticate": "Bearer"} if status_code == 401 else None
        return JSONResponse(status_code=status_code, content=exc.to_dict(), headers=headers)
