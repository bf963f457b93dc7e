"""Email and password rules shared by registration, reset and login."""

from __future__ import annotations

import re
from collections.abc import Iterable

from storefront.services._shared.errors import ValidationError

_EMAIL_RE = re.compile(r"^[^@\s]+@([^@\s]+\.[^@\s]+)$")


def parse_domains(raw: str | Iterable[str] | None) -> frozenset[str]:
    """Turn ``"gmail.com, example.org"`` (or an iterable) into a lowercase set.

    An empty result means every domain is accepted.
    """
    if raw is None:
        return frozenset()
    parts = raw.split(",") if isinstance(raw, str) else raw
    return frozenset(p.strip().lower() for p in parts if p and p.strip())


def normalize_email(raw: str | None) -> str:
    return (raw or "").strip().lower()


def check_email(raw: str | None, *, allowed_domains: frozenset[str]) -> str:
    """Validate format and domain policy.

    :returns: The normalized email.
    :raises ValidationError: ``missing_field``, ``invalid_email`` or
        ``email_domain_not_allowed``.
    """
    email = normalize_email(raw)
    if not email:
        raise ValidationError("Email is required.", code="missing_field", field="email")
    match = _EMAIL_RE.match(email)
    if match is None:
        raise ValidationError("Email format is invalid.", code="invalid_email", field="email")
    if allowed_domains and match.group(1) not in allowed_domains:
        allowed = ", ".join(sorted(allowed_domains))
        raise ValidationError(
            f"Only addresses from {allowed} are accepted.",
            code="email_domain_not_allowed",
            field="email",
        )
    return email


def check_password(raw: str | None, *, min_length: int, field: str = "password") -> str:
    if not raw:
        raise ValidationError("Password is required.", code="missing_field", field=field)
    if len(raw) < min_length:
        raise ValidationError(
            f"Password must be at least {min_length} characters long.",
            code="password_too_short",
            field=field,
        )
    return raw


def check_name(raw: str | None) -> str:
    name = (raw or "").strip()
    if not name:
        raise ValidationError("Name is required.", code="missing_field", field="name")
    return name
