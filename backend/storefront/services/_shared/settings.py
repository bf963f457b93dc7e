from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from storefront.core.security import DEFAULT_BCRYPT_ROUNDS
from storefront.services._shared.policies.credentials import parse_domains


@dataclass(frozen=True, slots=True)
class AccountSettings:
    """
    Tunables shared by the registration, reset and login flows.

    :param confirm_ttl: Lifetime of registration confirmation tokens.
    :type confirm_ttl: timedelta
    :param reset_ttl: Lifetime of password reset tokens.
    :type reset_ttl: timedelta
    :param allowed_domains: Accepted email domains; empty accepts all.
    :type allowed_domains: frozenset[str]
    :param password_min_length: Minimum password length.
    :type password_min_length: int
    :param bcrypt_rounds: bcrypt cost factor.
    :type bcrypt_rounds: int
    :param auto_confirm: Activate accounts at registration without email.
    :type auto_confirm: bool
    :param frontend_url: Base URL for links placed in emails.
    :type frontend_url: str
    :param email_timeout: Seconds allowed for a single email dispatch.
    :type email_timeout: float
    """

    confirm_ttl: timedelta = timedelta(minutes=5)
    reset_ttl: timedelta = timedelta(minutes=30)
    allowed_domains: frozenset[str] = frozenset({"gmail.com"})
    password_min_length: int = 6
    bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS
    auto_confirm: bool = False
    frontend_url: str = "http://localhost:5173"
    email_timeout: float = 10.0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AccountSettings:
        return cls(
            confirm_ttl=timedelta(seconds=int(config.get("CONFIRM_TOKEN_TTL_SECONDS", 300))),
            reset_ttl=timedelta(seconds=int(config.get("RESET_TOKEN_TTL_SECONDS", 1800))),
            allowed_domains=parse_domains(config.get("ALLOWED_EMAIL_DOMAINS", "gmail.com")),
            password_min_length=int(config.get("PASSWORD_MIN_LENGTH", 6)),
            bcrypt_rounds=int(config.get("BCRYPT_LOG_ROUNDS", DEFAULT_BCRYPT_ROUNDS)),
            auto_confirm=bool(config.get("AUTO_CONFIRM_REGISTRATION", False)),
            frontend_url=str(config.get("FRONTEND_URL", "http://localhost:5173")),
            email_timeout=float(config.get("EMAIL_DISPATCH_TIMEOUT_SECONDS", 10.0)),
        )

    @property
    def confirm_ttl_minutes(self) -> int:
        return max(1, int(self.confirm_ttl.total_seconds() // 60))

    @property
    def reset_ttl_minutes(self) -> int:
        return max(1, int(self.reset_ttl.total_seconds() // 60))
