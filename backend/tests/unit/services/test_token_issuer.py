# tests/unit/services/test_token_issuer.py
from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from storefront.services._shared.errors import AuthenticationError, EntropyUnavailableError
from storefront.services.tokens import service as token_module
from storefront.services.tokens.dto import SessionConfig
from storefront.services.tokens.service import TokenIssuer

SECRET = "unit-test-signing-key-0123456789abcdef"


@pytest.fixture()
def issuer(clock) -> TokenIssuer:
    return TokenIssuer(SessionConfig(secret=SECRET), clock=clock, jti_factory=lambda: "jti-1")


class TestEphemeralTokens:
    def test_values_are_64_hex_chars_and_unique(self, issuer):
        values = {issuer.new_ephemeral_token() for _ in range(50)}
        assert len(values) == 50
        assert all(len(v) == 64 and int(v, 16) >= 0 for v in values)

    def test_digest_is_sha256_hex(self, issuer):
        digest = issuer.digest("abc")
        assert digest == "ba7816bf8f01cfea414140de5dae2223b00361a396177a9cb410ff61f20015ad"

    def test_entropy_failure_is_reported(self, issuer, monkeypatch):
        def broken(_n):
            raise OSError("no randomness")

        monkeypatch.setattr(token_module.secrets, "token_hex", broken)
        with pytest.raises(EntropyUnavailableError):
            issuer.new_ephemeral_token()


class TestSessionTokens:
    def test_round_trip_claims(self, issuer, clock):
        token = issuer.issue_session(7, "a@gmail.com", "admin")
        claims = issuer.verify_session(token)

        assert claims.user_id == 7
        assert claims.email == "a@gmail.com"
        assert claims.role == "admin"
        assert claims.jti == "jti-1"
        assert claims.expires_at - claims.issued_at == timedelta(hours=24)
        assert claims.issued_at == clock.now.replace(microsecond=0)

    def test_deterministic_for_fixed_inputs(self, issuer):
        assert issuer.issue_session(1, "a@gmail.com", "user") == issuer.issue_session(
            1, "a@gmail.com", "user"
        )

    def test_expired_at_exact_boundary(self, issuer, clock):
        token = issuer.issue_session(1, "a@gmail.com", "user")
        clock.advance(hours=24)
        with pytest.raises(AuthenticationError) as exc:
            issuer.verify_session(token)
        assert exc.value.code == "session_expired"

    def test_valid_just_before_expiry(self, issuer, clock):
        token = issuer.issue_session(1, "a@gmail.com", "user")
        clock.advance(hours=23, minutes=59, seconds=59)
        assert issuer.verify_session(token).user_id == 1

    def test_wrong_key_is_invalid(self, issuer, clock):
        other = TokenIssuer(SessionConfig(secret="another-key-0123456789abcdef0123"), clock=clock)
        token = other.issue_session(1, "a@gmail.com", "user")
        with pytest.raises(AuthenticationError) as exc:
            issuer.verify_session(token)
        assert exc.value.code == "invalid_session"

    def test_unsigned_token_is_rejected(self, issuer, clock):
        payload = {
            "sub": "1",
            "email": "a@gmail.com",
            "role": "admin",
            "jti": "x",
            "iat": int(clock.now.timestamp()),
            "exp": int(clock.now.timestamp()) + 60,
        }
        forged = jwt.encode(payload, key=None, algorithm="none")
        with pytest.raises(AuthenticationError) as exc:
            issuer.verify_session(forged)
        assert exc.value.code == "invalid_session"

    def test_missing_claim_is_invalid(self, issuer, clock):
        payload = {"sub": "1", "iat": int(clock.now.timestamp()), "exp": 9999999999}
        token = jwt.encode(payload, SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError) as exc:
            issuer.verify_session(token)
        assert exc.value.code == "invalid_session"

    @pytest.mark.parametrize("garbage", ["", "not-a-jwt", "a.b.c"])
    def test_garbage_is_invalid(self, issuer, garbage):
        with pytest.raises(AuthenticationError) as exc:
            issuer.verify_session(garbage)
        assert exc.value.code == "invalid_session"


class TestSessionConfig:
    def test_rejects_empty_secret(self):
        with pytest.raises(ValueError):
            SessionConfig(secret="")

    def test_rejects_none_algorithm(self):
        with pytest.raises(ValueError):
            SessionConfig(secret="k" * 32, algorithm="none")

    def test_from_mapping(self):
        cfg = SessionConfig.from_mapping(
            {"JWT_SECRET_KEY": "k" * 32, "SESSION_TTL_HOURS": 2, "JWT_ALGORITHM": "HS256"}
        )
        assert cfg.ttl == timedelta(hours=2)
        assert cfg.algorithm == "HS256"
