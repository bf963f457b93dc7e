"""Authentication helpers for tests."""

from __future__ import annotations

from storefront.api.deps import get_token_issuer


def issue_token(user) -> str:
    """Mint a session token for ``user`` with the application's issuer.

    Must be called inside an application context.
    """

    return get_token_issuer().issue_session(user.id, user.email, str(user.role.value))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
