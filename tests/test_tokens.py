"""
AuthCore - Token Generation and JWT Codec Tests

Run with: pytest tests/test_tokens.py -v
"""

import pytest
from datetime import timedelta

from authcore.auth.generator import ALPHANUMERIC, SecureTokenGenerator
from authcore.auth.tokens import (
    JWTTokenCodec,
    TokenExpiredError,
    TokenSignatureError,
    parse_access_claims,
)
from tests.conftest import TEST_SECRET_KEY


# =============================================================================
# SECURE TOKEN GENERATOR
# =============================================================================

class TestSecureTokenGenerator:

    def test_alphabet_has_62_symbols(self):
        assert len(ALPHANUMERIC) == 62
        assert len(set(ALPHANUMERIC)) == 62

    def test_token_has_requested_length_and_alphabet(self):
        token = SecureTokenGenerator().random_token(32)

        assert len(token) == 32
        assert set(token) <= set(ALPHANUMERIC)

    def test_custom_alphabet(self):
        token = SecureTokenGenerator().random_token(50, "ab")

        assert set(token) <= {"a", "b"}

    def test_tokens_are_unique(self):
        generator = SecureTokenGenerator()
        tokens = {generator.random_token(32) for _ in range(500)}

        assert len(tokens) == 500

    def test_uses_csprng(self, monkeypatch):
        """Tokens come from secrets, never from the random module."""
        import random

        def fail(*args, **kwargs):
            raise AssertionError("random module must not be used")

        monkeypatch.setattr(random, "choice", fail)
        monkeypatch.setattr(random, "random", fail)

        assert len(SecureTokenGenerator().random_token(16)) == 16

    @pytest.mark.parametrize("length, alphabet", [(0, ALPHANUMERIC), (-1, ALPHANUMERIC), (8, "")])
    def test_invalid_arguments_rejected(self, length, alphabet):
        with pytest.raises(ValueError):
            SecureTokenGenerator().random_token(length, alphabet)


# =============================================================================
# JWT CODEC
# =============================================================================

ACCESS_CLAIMS = {
    "sub": "user-1",
    "email": "alice@example.com",
    "role": "USER",
    "sid": "sess_abc",
    "type": "access",
}


class TestJWTTokenCodec:

    def test_sign_and_verify(self, codec, clock):
        token = codec.sign(ACCESS_CLAIMS, timedelta(minutes=15))
        claims = codec.verify(token)

        assert claims["sub"] == "user-1"
        assert claims["sid"] == "sess_abc"
        assert claims["iat"] == int(clock.now().timestamp())
        assert claims["exp"] == claims["iat"] + 900
        assert len(claims["jti"]) == 32

    def test_each_token_gets_distinct_jti(self, codec):
        first = codec.verify(codec.sign(ACCESS_CLAIMS, timedelta(minutes=15)))
        second = codec.verify(codec.sign(ACCESS_CLAIMS, timedelta(minutes=15)))

        assert first["jti"] != second["jti"]

    def test_expired_token(self, codec, clock):
        token = codec.sign(ACCESS_CLAIMS, timedelta(minutes=15))

        clock.advance(minutes=15)
        codec.verify(token)  # exactly at exp is still valid

        clock.advance(seconds=1)
        with pytest.raises(TokenExpiredError):
            codec.verify(token)

    def test_garbage_token(self, codec):
        with pytest.raises(TokenSignatureError):
            codec.verify("invalid.token.here")

    def test_tampered_token(self, codec):
        token = codec.sign(ACCESS_CLAIMS, timedelta(minutes=15))
        parts = token.split(".")
        parts[1] = parts[1] + "tampered"

        with pytest.raises(TokenSignatureError):
            codec.verify(".".join(parts))

    def test_token_signed_with_other_key(self, clock):
        foreign = JWTTokenCodec("another-secret-key-that-is-long-enough", clock=clock)
        token = foreign.sign(ACCESS_CLAIMS, timedelta(minutes=15))

        with pytest.raises(TokenSignatureError):
            JWTTokenCodec(TEST_SECRET_KEY, clock=clock).verify(token)

    def test_empty_secret_rejected(self):
        with pytest.raises(ValueError):
            JWTTokenCodec("")


class TestAccessClaims:

    def test_parse_access_claims(self, codec):
        claims = codec.verify(codec.sign(ACCESS_CLAIMS, timedelta(minutes=15)))
        payload = parse_access_claims(claims)

        assert payload.sub == "user-1"
        assert payload.role == "USER"
        assert payload.type == "access"

    def test_wrong_token_type_rejected(self, codec):
        claims = codec.verify(codec.sign({**ACCESS_CLAIMS, "type": "refresh"}, timedelta(minutes=15)))

        with pytest.raises(TokenSignatureError):
            parse_access_claims(claims)

    def test_missing_claims_rejected(self, codec):
        claims = codec.verify(codec.sign({"sub": "user-1"}, timedelta(minutes=15)))

        with pytest.raises(TokenSignatureError):
            parse_access_claims(claims)
