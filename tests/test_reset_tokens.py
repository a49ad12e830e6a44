"""
AuthCore - Password Reset Tests

Covers the token manager (issue, expiry, single use) and the reset
flow (password change, session revocation).

Run with: pytest tests/test_reset_tokens.py -v
"""

import pytest

from authcore.auth.exceptions import InvalidCredentials, SessionRevoked
from authcore.auth.generator import ALPHANUMERIC
from authcore.domain.exceptions import (
    ExpiredResetToken,
    InvalidEmailForPasswordReset,
    InvalidResetToken,
    ResetTokenAlreadyUsed,
    UserNotFoundForPasswordReset,
    WeakPassword,
)
from tests.conftest import ALICE_PASSWORD, BOB_PASSWORD


NEW_PASSWORD = "BrandNewPass456"


# =============================================================================
# TOKEN MANAGER
# =============================================================================

class TestPasswordResetTokenManager:

    def test_token_shape(self, reset_tokens, clock):
        token = reset_tokens.create("user-1")

        assert len(token.token) == 32
        assert set(token.token) <= set(ALPHANUMERIC)
        assert token.created_at == clock.now()
        assert token.used_at is None
        assert not token.is_used

    def test_expires_after_one_hour(self, reset_tokens, clock):
        token = reset_tokens.create("user-1")

        clock.advance(hours=1)
        assert not reset_tokens.is_expired(token)

        clock.advance(seconds=1)
        assert reset_tokens.is_expired(token)

    def test_tokens_are_unique(self, reset_tokens):
        values = {reset_tokens.create("user-1").token for _ in range(200)}

        assert len(values) == 200

    def test_consume_once(self, reset_tokens, clock):
        token = reset_tokens.create("user-1")

        consumed = reset_tokens.consume(token.token)

        assert consumed.used_at == clock.now()
        assert reset_tokens.get(token.token).is_used
        with pytest.raises(ResetTokenAlreadyUsed):
            reset_tokens.consume(token.token)

    def test_consume_unknown_token(self, reset_tokens):
        with pytest.raises(InvalidResetToken):
            reset_tokens.consume("does-not-exist")

    def test_consume_expired_token(self, reset_tokens, clock):
        token = reset_tokens.create("user-1")
        clock.advance(hours=2)

        with pytest.raises(ExpiredResetToken):
            reset_tokens.consume(token.token)

    def test_revoke_for_user(self, reset_tokens):
        first = reset_tokens.create("user-1")
        second = reset_tokens.create("user-1")
        other = reset_tokens.create("user-2")

        assert reset_tokens.revoke_for_user("user-1") == 2
        assert reset_tokens.get(first.token) is None
        assert reset_tokens.get(second.token) is None
        assert reset_tokens.get(other.token) is not None

    def test_purge_expired(self, reset_tokens, clock):
        old = reset_tokens.create("user-1")
        clock.advance(minutes=45)
        fresh = reset_tokens.create("user-1")
        clock.advance(minutes=30)

        assert reset_tokens.purge_expired() == 1
        assert reset_tokens.get(old.token) is None
        assert reset_tokens.get(fresh.token) is not None

    def test_create_drops_expired_tokens(self, reset_tokens, clock):
        for _ in range(3):
            reset_tokens.create("user-1")
            clock.advance(minutes=10)
        clock.advance(days=2)

        latest = reset_tokens.create("user-1")

        assert len(reset_tokens) == 1
        assert reset_tokens.get(latest.token) is not None


# =============================================================================
# RESET FLOW
# =============================================================================

class TestPasswordResetService:

    def test_request_reset_for_known_user(self, reset_service, alice):
        token = reset_service.request_reset("Alice@Example.com")

        assert token.user_id == alice.id

    def test_request_reset_malformed_email(self, reset_service):
        with pytest.raises(InvalidEmailForPasswordReset):
            reset_service.request_reset("not-an-email")

    def test_request_reset_unknown_email(self, reset_service):
        with pytest.raises(UserNotFoundForPasswordReset):
            reset_service.request_reset("nobody@example.com")

    def test_request_reset_inactive_user(self, reset_service, inactive_user):
        with pytest.raises(UserNotFoundForPasswordReset):
            reset_service.request_reset(inactive_user.email)

    def test_reset_changes_password(self, reset_service, service, alice):
        token = reset_service.request_reset(alice.email)

        reset_service.reset_password(token.token, NEW_PASSWORD)

        with pytest.raises(InvalidCredentials):
            service.login(alice.email, ALICE_PASSWORD, "127.0.0.1")
        assert service.login(alice.email, NEW_PASSWORD, "127.0.0.1").user.id == alice.id

    def test_reset_closes_every_session_of_the_user(self, reset_service, service, alice, bob):
        first = service.login(alice.email, ALICE_PASSWORD, "127.0.0.1")
        service.login(alice.email, ALICE_PASSWORD, "10.0.0.2")
        bob_login = service.login(bob.email, BOB_PASSWORD, "10.0.0.3")
        token = reset_service.request_reset(alice.email)

        closed = reset_service.reset_password(token.token, NEW_PASSWORD)

        assert closed == 2
        assert service.get_active_sessions(alice.id) == []
        with pytest.raises(SessionRevoked):
            service.validate_access_token(first.tokens.access_token)
        assert service.validate_access_token(bob_login.tokens.access_token).user.id == bob.id

    def test_reset_token_single_use(self, reset_service, alice):
        token = reset_service.request_reset(alice.email)
        reset_service.reset_password(token.token, NEW_PASSWORD)

        with pytest.raises(ResetTokenAlreadyUsed):
            reset_service.reset_password(token.token, "AnotherPass789")

    def test_reset_drops_other_outstanding_tokens(self, reset_service, alice):
        first = reset_service.request_reset(alice.email)
        second = reset_service.request_reset(alice.email)

        reset_service.reset_password(second.token, NEW_PASSWORD)

        with pytest.raises(InvalidResetToken):
            reset_service.reset_password(first.token, "AnotherPass789")

    def test_reset_with_expired_token(self, reset_service, alice, clock):
        token = reset_service.request_reset(alice.email)
        clock.advance(hours=1, seconds=1)

        with pytest.raises(ExpiredResetToken):
            reset_service.reset_password(token.token, NEW_PASSWORD)

    def test_weak_password_leaves_token_usable(self, reset_service, alice):
        token = reset_service.request_reset(alice.email)

        with pytest.raises(WeakPassword):
            reset_service.reset_password(token.token, "short")

        reset_service.reset_password(token.token, NEW_PASSWORD)

    @pytest.mark.parametrize("password", ["x" * 80, "é" * 40])
    def test_password_over_72_bytes_leaves_token_usable(self, reset_service, reset_tokens, service, alice, password):
        token = reset_service.request_reset(alice.email)

        with pytest.raises(WeakPassword):
            reset_service.reset_password(token.token, password)

        assert not reset_tokens.get(token.token).is_used
        service.login(alice.email, ALICE_PASSWORD, "127.0.0.1")
        reset_service.reset_password(token.token, NEW_PASSWORD)

    def test_password_of_exactly_72_bytes_accepted(self, reset_service, service, alice):
        token = reset_service.request_reset(alice.email)

        reset_service.reset_password(token.token, "p" * 72)

        assert service.login(alice.email, "p" * 72, "127.0.0.1").user.id == alice.id

    def test_reset_for_account_deactivated_after_request(self, reset_service, service, store, alice):
        token = reset_service.request_reset(alice.email)
        store.set_active(alice.id, False)

        with pytest.raises(UserNotFoundForPasswordReset):
            reset_service.reset_password(token.token, NEW_PASSWORD)

        store.set_active(alice.id, True)
        assert service.login(alice.email, ALICE_PASSWORD, "127.0.0.1").user.id == alice.id

    def test_outstanding_tokens_do_not_accumulate(self, reset_service, reset_tokens, alice, bob, clock):
        reset_service.request_reset(alice.email)
        reset_service.request_reset(bob.email)
        reset_service.request_reset(alice.email)
        clock.advance(days=2)

        latest = reset_service.request_reset(alice.email)

        assert len(reset_tokens) == 1
        assert reset_tokens.get(latest.token) is not None
