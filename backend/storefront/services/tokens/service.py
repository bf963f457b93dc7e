# storefront/services/tokens/service.py
from __future__ import annotations

import hashlib
import logging
import secrets
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

import jwt

from storefront.services._shared.base import Clock, system_clock
from storefront.services._shared.errors import AuthenticationError, EntropyUnavailableError
from storefront.services.tokens.dto import SessionClaims, SessionConfig

logger = logging.getLogger(__name__)

EPHEMERAL_TOKEN_BYTES = 32
_REQUIRED_CLAIMS = ("sub", "email", "role", "jti", "iat", "exp")


def _random_hex(nbytes: int) -> str:
    try:
        return secrets.token_hex(nbytes)
    except (OSError, NotImplementedError) as exc:
        logger.error("Secure random source failed: %s", exc)
        raise EntropyUnavailableError() from exc


class TokenIssuer:
    """
    Mint and verify credentials.

    Two kinds of token come out of here:

    * **Ephemeral tokens**: 256-bit random hex values mailed to users. Only
      their SHA-256 digest is ever persisted.
    * **Session tokens**: HS256 JWTs carrying ``sub``, ``email``, ``role``,
      ``jti``, ``iat`` and ``exp``. Verification accepts only the configured
      algorithm and checks expiry against the injected clock.

    Given a fixed key, clock and ``jti_factory`` the output is deterministic.
    """

    def __init__(
        self,
        config: SessionConfig,
        *,
        clock: Clock | None = None,
        jti_factory: Callable[[], str] | None = None,
    ) -> None:
        self.config = config
        self.clock: Clock = clock or system_clock
        self._jti_factory = jti_factory or (lambda: _random_hex(16))

    # ------------------------------------------------------------------ #
    # Ephemeral tokens
    # ------------------------------------------------------------------ #

    def new_ephemeral_token(self) -> str:
        """
        :returns: 64 hex characters of fresh randomness.
        :raises EntropyUnavailableError: If the OS random source fails.
        """
        return _random_hex(EPHEMERAL_TOKEN_BYTES)

    @staticmethod
    def digest(value: str) -> str:
        """SHA-256 hex digest used as the storage key for an ephemeral token."""
        return hashlib.sha256(value.encode("utf-8")).hexdigest()

    # ------------------------------------------------------------------ #
    # Session tokens
    # ------------------------------------------------------------------ #

    def issue_session(self, user_id: int, email: str, role: str) -> str:
        now = self.clock()
        expires_at = now + self.config.ttl
        payload: dict[str, Any] = {
            "sub": str(user_id),
            "email": email,
            "role": str(getattr(role, "value", role)),
            "jti": self._jti_factory(),
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.config.secret, algorithm=self.config.algorithm)

    def verify_session(self, token: str) -> SessionClaims:
        """
        Check signature, algorithm, shape and expiry.

        :raises AuthenticationError: ``session_expired`` once ``exp <= now``;
            ``invalid_session`` for every other defect.
        """
        if not token:
            raise self._invalid("Missing session token.")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as exc:
            raise self._invalid("Malformed session token.") from exc
        if header.get("alg") != self.config.algorithm:
            raise self._invalid("Unsupported token algorithm.")

        try:
            payload = jwt.decode(
                token,
                self.config.secret,
                algorithms=[self.config.algorithm],
                # Time claims are checked below against the injected clock
                options={
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "require": list(_REQUIRED_CLAIMS),
                },
            )
        except jwt.InvalidTokenError as exc:
            raise self._invalid("Invalid session token.") from exc

        claims = self._parse(payload)
        if claims.expires_at <= self.clock():
            raise AuthenticationError("Session has expired.", code="session_expired")
        return claims

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _invalid(message: str) -> AuthenticationError:
        return AuthenticationError(message, code="invalid_session")

    def _parse(self, payload: dict[str, Any]) -> SessionClaims:
        try:
            user_id = int(payload["sub"])
            issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (TypeError, ValueError, OverflowError) as exc:
            raise self._invalid("Malformed session claims.") from exc

        email, role, jti = payload["email"], payload["role"], payload["jti"]
        if not all(isinstance(v, str) and v for v in (email, role, jti)):
            raise self._invalid("Malformed session claims.")
        return SessionClaims(
            user_id=user_id,
            email=email,
            role=role,
            jti=jti,
            issued_at=issued_at,
            expires_at=expires_at,
        )
