"""
SessionGuard: turn a presented credential into an :class:`Identity`.

Order of checks
---------------
1. Credential extraction (``Authorization: Bearer`` first, then cookie).
2. Signature / algorithm / expiry via :class:`TokenIssuer`.
3. Revocation via :class:`SessionDenylist`.
4. Subject lookup in a read-only unit of work.

The guard never writes.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from storefront.models.user import UserRole, UserStatus
from storefront.services._shared.base import BaseService, Clock
from storefront.services._shared.errors import AuthenticationError
from storefront.services._shared.ports.denylist_store import SessionDenylist
from storefront.services.session.dto import Identity
from storefront.services.tokens.service import TokenIssuer

logger = logging.getLogger(__name__)

BEARER_PREFIX = "bearer "
DEFAULT_COOKIE_NAME = "auth_token"


def extract_credential(
    headers: Mapping[str, str],
    cookies: Mapping[str, str],
    *,
    cookie_name: str = DEFAULT_COOKIE_NAME,
) -> str | None:
    """
    Pick the session token out of a request.

    :returns: The raw token, or ``None`` when neither transport carries one.
    """
    auth = (headers.get("Authorization") or "").strip()
    if auth[: len(BEARER_PREFIX)].lower() == BEARER_PREFIX:
        token = auth[len(BEARER_PREFIX) :].strip()
        if token:
            return token
    return cookies.get(cookie_name) or None


class SessionGuard(BaseService):
    def __init__(
        self,
        *,
        tokens: TokenIssuer,
        denylist: SessionDenylist,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.tokens = tokens
        self.denylist = denylist

    def authenticate(self, token: str | None) -> Identity:
        """
        :raises AuthenticationError: ``missing_session``, ``invalid_session``,
            ``session_expired``, ``session_revoked`` or ``unknown_subject``.
        """
        if not token:
            raise AuthenticationError("Authentication required.", code="missing_session")

        claims = self.tokens.verify_session(token)
        if self.denylist.is_revoked(claims.jti):
            raise AuthenticationError("Session has been revoked.", code="session_revoked")

        with self.ro_uow() as uow:
            user = uow.users.get(claims.user_id)
            if user is None:
                logger.info("Session for unknown subject", extra={"user_id": claims.user_id})
                raise AuthenticationError("Account no longer exists.", code="unknown_subject")
            return Identity(
                user_id=user.id,
                email=user.email,
                role=UserRole(user.role).value,
                status=UserStatus(user.status).value,
                jti=claims.jti,
                expires_at=claims.expires_at,
            )

    def require_admin(self, identity: Identity) -> Identity:
        """:raises AuthorizationError: Unless the caller's role is ``admin``."""
        self.ensure_admin(identity.role)
        return identity
