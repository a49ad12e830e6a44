"""
AuthCore - Domain Layer

Value objects and the domain exception taxonomy shared by the services.
"""

from authcore.domain.email import Email
from authcore.domain.exceptions import (
    DomainException,
    EmptyFieldException,
    InvalidFormatException,
)

__all__ = [
    "Email",
    "DomainException",
    "EmptyFieldException",
    "InvalidFormatException",
]
