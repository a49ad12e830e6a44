"""
AuthCore - Password Hashing Utilities

bcrypt hashing for stored credentials. The work factor is
configurable (BCRYPT_WORK_FACTOR) so tests can run with the minimum.

Security:
- Never log or expose plaintext passwords
- bcrypt includes salt automatically
- Unknown users are checked against a dummy hash to keep login timing flat
"""

from functools import lru_cache

import bcrypt


DEFAULT_WORK_FACTOR = 12
MIN_WORK_FACTOR = 4

# bcrypt only reads the first 72 bytes and recent releases reject longer input
MAX_PASSWORD_BYTES = 72


def hash_password(password: str, work_factor: int = DEFAULT_WORK_FACTOR) -> str:
    """
    Hash a password using bcrypt.

    Callers must reject passwords over MAX_PASSWORD_BYTES first; bcrypt
    raises ValueError for them.

    Example:
        >>> hashed = hash_password("Secret123!", work_factor=4)
        >>> hashed.startswith("$2b$04$")
        True
    """
    salt = bcrypt.gensalt(rounds=max(work_factor, MIN_WORK_FACTOR))
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verify a password against a bcrypt hash in constant time.

    Returns False for malformed hashes instead of raising.
    """
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except (ValueError, TypeError):
        return False


def exceeds_max_length(password: str) -> bool:
    """True if the UTF-8 encoded password is longer than bcrypt accepts."""
    return len(password.encode("utf-8")) > MAX_PASSWORD_BYTES


@lru_cache(maxsize=8)
def dummy_hash(work_factor: int = DEFAULT_WORK_FACTOR) -> str:
    """Hash with the same cost as real ones, for unknown-user logins."""
    return hash_password("authcore-dummy-password", work_factor)


def needs_rehash(hashed_password: str, target_work_factor: int = DEFAULT_WORK_FACTOR) -> bool:
    """
    Check whether a stored hash was made with a lower work factor.

    bcrypt format is $2b$XX$..., XX being the work factor.
    """
    try:
        _, work_factor_str, _ = hashed_password.split("$")[1:4]
        return int(work_factor_str) < target_work_factor
    except (ValueError, IndexError):
        return True
