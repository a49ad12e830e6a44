"""
AuthCore - Secure Token Generation

Random credentials for sessions, refresh tokens and password resets.
All values are drawn from the operating system CSPRNG via `secrets`.
"""

import secrets
import string


ALPHANUMERIC = string.ascii_uppercase + string.ascii_lowercase + string.digits

SESSION_ID_PREFIX = "sess_"
SESSION_ID_LENGTH = 32
REFRESH_TOKEN_LENGTH = 64
RESET_TOKEN_LENGTH = 32


class SecureTokenGenerator:
    """
    Generates unguessable tokens.

    A 32-symbol token over the 62-symbol alphabet carries ~190 bits of
    entropy; refresh tokens use 64 symbols.
    """

    def random_token(self, length: int, alphabet: str = ALPHANUMERIC) -> str:
        """
        Draw `length` symbols uniformly from `alphabet`.

        Raises:
            ValueError: If length is not positive or alphabet is empty
        """
        if length <= 0:
            raise ValueError("Token length must be positive")
        if not alphabet:
            raise ValueError("Alphabet cannot be empty")
        return "".join(secrets.choice(alphabet) for _ in range(length))
