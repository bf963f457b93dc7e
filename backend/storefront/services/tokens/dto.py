# storefront/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """
    Signing material and lifetime for session tokens.

    :param secret: HMAC signing key.
    :type secret: str
    :param ttl: Absolute session lifetime.
    :type ttl: timedelta
    :param algorithm: The only JWS algorithm accepted when verifying.
    :type algorithm: str
    """

    secret: str
    ttl: timedelta = timedelta(hours=24)
    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if not self.secret:
            raise ValueError("Session signing key must not be empty.")
        if self.algorithm.lower() == "none":
            raise ValueError("Unsigned session tokens are not supported.")
        if self.ttl <= timedelta(0):
            raise ValueError("Session TTL must be positive.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> SessionConfig:
        """Read ``JWT_SECRET_KEY``, ``SESSION_TTL_HOURS`` and ``JWT_ALGORITHM``."""
        return cls(
            secret=str(config.get("JWT_SECRET_KEY") or ""),
            ttl=timedelta(hours=int(config.get("SESSION_TTL_HOURS", 24))),
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
        )


@dataclass(frozen=True, slots=True)
class SessionClaims:
    """
    Verified contents of a session token.

    :param user_id: Subject id (``sub``).
    :type user_id: int
    :param email: Email at issuance time.
    :type email: str
    :param role: Role at issuance time.
    :type role: str
    :param jti: Unique token id, used for revocation.
    :type jti: str
    :param issued_at: ``iat`` as an aware UTC datetime.
    :type issued_at: datetime
    :param expires_at: ``exp`` as an aware UTC datetime.
    :type expires_at: datetime
    """

    user_id: int
    email: str
    role: str
    jti: str
    issued_at: datetime
    expires_at: datetime
