"""
AuthCore - JWT Token Management

Signs and verifies access-token claims:
- User ID (sub), email and role
- Session ID (sid) for server-side revocation checks
- Unique token ID (jti for audit correlation)

Security:
- Short-lived tokens (15 minutes default)
- Expiry is checked against the injected clock, not the host clock
"""

from datetime import timedelta
from typing import Any, Dict
import secrets

from jose import jwt, JWTError
from pydantic import BaseModel, Field, ValidationError

from authcore.auth.ports import Clock, SystemClock


ACCESS_TOKEN_TYPE = "access"


class TokenSignatureError(Exception):
    """Raised when a token is malformed or its signature does not verify."""
    pass


class TokenExpiredError(Exception):
    """Raised when a token's exp claim is in the past."""
    pass


class TokenPayload(BaseModel):
    """
    Access token claims.

    Attributes:
        sub: Subject (user ID)
        email: User email at issue time
        role: User role
        sid: Session ID for server-side validation
        jti: Unique token ID for audit
        type: Token kind, always "access"
        exp: Expiration (epoch seconds)
        iat: Issued at (epoch seconds)
    """
    sub: str = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    role: str = Field(..., description="User role")
    sid: str = Field(..., description="Session ID")
    jti: str = Field(..., description="Token ID for audit")
    type: str = Field(..., description="Token type")
    exp: int = Field(..., description="Expiration time")
    iat: int = Field(..., description="Issued at time")


class JWTTokenCodec:
    """
    HMAC-signed JWT codec.

    Example:
        >>> codec = JWTTokenCodec("secret")
        >>> token = codec.sign({"sub": "user-1"}, timedelta(minutes=15))
        >>> codec.verify(token)["sub"]
        'user-1'
    """

    def __init__(self, secret_key: str, algorithm: str = "HS256", clock: Clock = None):
        if not secret_key:
            raise ValueError("JWT secret key must be set")
        self._secret_key = secret_key
        self._algorithm = algorithm
        self._clock = clock or SystemClock()

    def sign(self, claims: Dict[str, Any], ttl: timedelta) -> str:
        """
        Encode claims with iat, exp and a fresh jti.

        Returns:
            Encoded JWT string
        """
        issued_at = int(self._clock.now().timestamp())
        payload = {
            "jti": secrets.token_hex(16),
            **claims,
            "iat": issued_at,
            "exp": issued_at + int(ttl.total_seconds()),
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Decode a token and check its expiry.

        Raises:
            TokenSignatureError: Malformed token or bad signature
            TokenExpiredError: exp is in the past
        """
        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_exp": False},
            )
        except JWTError as e:
            raise TokenSignatureError(f"Token validation failed: {str(e)}")

        exp = claims.get("exp")
        if not isinstance(exp, int):
            raise TokenSignatureError("Token has no expiry")
        if self._clock.now().timestamp() > exp:
            raise TokenExpiredError("Token has expired")

        return claims


def parse_access_claims(claims: Dict[str, Any]) -> TokenPayload:
    """
    Validate decoded claims as an access token payload.

    Raises:
        TokenSignatureError: Missing claims or not an access token
    """
    try:
        payload = TokenPayload(**claims)
    except ValidationError as e:
        raise TokenSignatureError(f"Malformed token claims: {str(e)}")
    if payload.type != ACCESS_TOKEN_TYPE:
        raise TokenSignatureError("Invalid token type")
    return payload
