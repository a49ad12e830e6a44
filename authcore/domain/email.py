"""
AuthCore - Email Value Object

Immutable, self-validating email address. Construction fails eagerly,
so an invalid Email instance can never exist.
"""

import re

from authcore.domain.exceptions import EmptyFieldException, InvalidFormatException


MAX_EMAIL_LENGTH = 254
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")


class Email:
    """
    Normalized email address.

    Example:
        >>> Email("User@Example.COM").value
        'user@example.com'
        >>> Email("user@example.com").domain
        'example.com'
    """

    __slots__ = ("_value",)

    def __init__(self, value: str):
        if value is None or not value.strip():
            raise EmptyFieldException("Email")
        if len(value) > MAX_EMAIL_LENGTH:
            raise InvalidFormatException("email", f"longer than {MAX_EMAIL_LENGTH} characters")

        candidate = value.strip()
        if not EMAIL_PATTERN.match(candidate):
            raise InvalidFormatException("email", "expected local@domain.tld")

        object.__setattr__(self, "_value", candidate.lower())

    def __setattr__(self, name, value):
        raise AttributeError("Email is immutable")

    @property
    def value(self) -> str:
        return self._value

    @property
    def local_part(self) -> str:
        return self._value.split("@")[0]

    @property
    def domain(self) -> str:
        return self._value.split("@")[1]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Email):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"Email({self._value!r})"
