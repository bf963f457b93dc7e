"""Shared API helpers: service wiring, session guards and response utilities."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar, cast

from flask import Response, current_app, g, jsonify, request

from storefront.core.extensions import get_redis
from storefront.infra.mail.resend_email_sender import ResendEmailSender
from storefront.infra.redis.redis_denylist_store import RedisSessionDenylist
from storefront.schemas.common import PaginationQuerySchema
from storefront.services._shared.base import Clock, system_clock
from storefront.services._shared.dto import PaginationIn
from storefront.services._shared.ports.denylist_store import (
    InMemorySessionDenylist,
    SessionDenylist,
)
from storefront.services._shared.ports.email_sender import EmailSender, InMemoryEmailSender
from storefront.services._shared.settings import AccountSettings
from storefront.services.auth.service import AuthService
from storefront.services.cart.service import CartLedger
from storefront.services.password_reset.service import PasswordResetService
from storefront.services.registration.service import RegistrationService
from storefront.services.session.dto import Identity
from storefront.services.session.service import SessionGuard, extract_credential
from storefront.services.tokens.dto import SessionConfig
from storefront.services.tokens.service import TokenIssuer

F = TypeVar("F", bound=Callable[..., Any])

EXTENSION_KEY = "storefront"


@dataclass(slots=True)
class Pagination:
    """Container holding pagination arguments parsed from the request."""

    page: int
    limit: int
    sort: list[str]

    def to_input(self) -> PaginationIn:
        return PaginationIn(page=self.page, limit=self.limit, sort=self.sort)


def parse_pagination(default_limit: int = 20, max_limit: int = 100) -> Pagination:
    """Parse pagination parameters from ``request.args`` using Marshmallow."""

    schema = PaginationQuerySchema(default_limit=default_limit, max_limit=max_limit)
    data = schema.load(request.args)
    return Pagination(page=data["page"], limit=data["limit"], sort=data["sort"])


# --------------------------------------------------------------------------- #
# Wiring
# --------------------------------------------------------------------------- #


def _registry() -> dict[str, Any]:
    return cast(dict[str, Any], current_app.extensions.setdefault(EXTENSION_KEY, {}))


def _singleton(name: str, factory: Callable[[], Any]) -> Any:
    registry = _registry()
    if name not in registry:
        registry[name] = factory()
    return registry[name]


def get_clock() -> Clock:
    """Clock shared by all services; tests may replace it in the registry."""
    return cast(Clock, _registry().get("clock") or system_clock)


def get_account_settings() -> AccountSettings:
    return cast(
        AccountSettings,
        _singleton("settings", lambda: AccountSettings.from_mapping(current_app.config)),
    )


def get_session_config() -> SessionConfig:
    return cast(
        SessionConfig,
        _singleton("session_config", lambda: SessionConfig.from_mapping(current_app.config)),
    )


def _build_denylist() -> SessionDenylist:
    if current_app.config.get("REDIS_URL"):
        return RedisSessionDenylist(get_redis())
    return InMemorySessionDenylist()


def _build_email_sender() -> EmailSender:
    if current_app.config.get("MAIL_BACKEND", "resend") == "memory":
        return InMemoryEmailSender()
    return ResendEmailSender.from_mapping(current_app.config)


def get_denylist() -> SessionDenylist:
    return cast(SessionDenylist, _singleton("denylist", _build_denylist))


def get_email_sender() -> EmailSender:
    return cast(EmailSender, _singleton("email_sender", _build_email_sender))


def get_token_issuer() -> TokenIssuer:
    return TokenIssuer(get_session_config(), clock=get_clock())


def cart_ledger() -> CartLedger:
    return CartLedger(clock=get_clock())


def registration_service() -> RegistrationService:
    return RegistrationService(
        tokens=get_token_issuer(),
        mailer=get_email_sender(),
        settings=get_account_settings(),
        carts=cart_ledger(),
        clock=get_clock(),
    )


def password_reset_service() -> PasswordResetService:
    return PasswordResetService(
        tokens=get_token_issuer(),
        mailer=get_email_sender(),
        settings=get_account_settings(),
        clock=get_clock(),
    )


def auth_service() -> AuthService:
    return AuthService(
        tokens=get_token_issuer(),
        denylist=get_denylist(),
        carts=cart_ledger(),
        settings=get_account_settings(),
        clock=get_clock(),
    )


def session_guard() -> SessionGuard:
    return SessionGuard(tokens=get_token_issuer(), denylist=get_denylist(), clock=get_clock())


# --------------------------------------------------------------------------- #
# Session guards
# --------------------------------------------------------------------------- #


def current_identity() -> Identity:
    """Return the identity attached by :func:`require_session`."""
    identity = getattr(g, "identity", None)
    if identity is None:
        raise RuntimeError("No authenticated identity on this request.")
    return cast(Identity, identity)


def _authenticate() -> Identity:
    token = extract_credential(
        request.headers,
        request.cookies,
        cookie_name=current_app.config.get("JWT_ACCESS_COOKIE_NAME", "auth_token"),
    )
    identity = session_guard().authenticate(token)
    g.identity = identity
    return identity


def require_session(func: F) -> F:
    """Ensure the request carries a valid, unrevoked session."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        _authenticate()
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def require_admin(func: F) -> F:
    """Like :func:`require_session`, and the caller must be an admin."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        session_guard().require_admin(_authenticate())
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


# --------------------------------------------------------------------------- #
# Responses
# --------------------------------------------------------------------------- #


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
