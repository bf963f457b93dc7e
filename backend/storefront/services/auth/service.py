# storefront/services/auth/service.py
from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.core.security import verify_dummy_password
from storefront.models.user import User, UserRole, UserStatus
from storefront.services._shared.base import BaseService, Clock
from storefront.services._shared.dto import AckOut
from storefront.services._shared.errors import (
    AuthenticationError,
    ConflictError,
    ServiceError,
    ValidationError,
)
from storefront.services._shared.policies.credentials import normalize_email
from storefront.services._shared.ports.denylist_store import SessionDenylist
from storefront.services._shared.settings import AccountSettings
from storefront.services.auth.dto import FederatedLoginIn, LoginIn, SessionOut, UserOut
from storefront.services.cart.service import CartLedger
from storefront.services.tokens.service import TokenIssuer

logger = logging.getLogger(__name__)

# Same text for unknown email and wrong password.
INVALID_CREDENTIALS = "Invalid email or password."


def user_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        role=UserRole(user.role).value,
        status=UserStatus(user.status).value,
        picture=user.picture,
        has_password=user.has_password,
    )


class AuthService(BaseService):
    """
    Session lifecycle: login (password or federated), logout and whoami.

    Sessions are stateless JWTs from :class:`TokenIssuer`; logout records the
    token's ``jti`` in a :class:`SessionDenylist` until the token expires.
    """

    def __init__(
        self,
        *,
        tokens: TokenIssuer,
        denylist: SessionDenylist,
        carts: CartLedger | None = None,
        settings: AccountSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.tokens = tokens
        self.denylist = denylist
        self.settings = settings or AccountSettings()
        self.carts = carts or CartLedger(clock=self.clock)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> SessionOut:
        """
        Verify credentials and issue a session.

        :raises AuthenticationError: ``invalid_credentials`` (unknown email or
            wrong password) or ``account_not_confirmed``.
        """
        email = normalize_email(dto.email)
        if not email or not dto.password:
            raise ValidationError("Email and password are required.", code="missing_field")

        with self.ro_uow() as uow:
            user = uow.users.get_by_email(email)
            if user is None or not user.has_password:
                verify_dummy_password(dto.password, rounds=self.settings.bcrypt_rounds)
                raise AuthenticationError(INVALID_CREDENTIALS)
            if not user.verify_password(dto.password):
                raise AuthenticationError(INVALID_CREDENTIALS)
            if not user.is_active:
                raise AuthenticationError(
                    "Please confirm your email before signing in.",
                    code="account_not_confirmed",
                )
            out = user_out(user)

        logger.info("User signed in", extra={"user_id": out.id})
        return self._start_session(out)

    def login_federated(self, dto: FederatedLoginIn) -> SessionOut:
        """
        Sign in with an external identity, creating the account on first use.

        :raises ConflictError: ``email_already_registered`` when the email
            belongs to a password account.
        """
        if not dto.google_id or not normalize_email(dto.email):
            raise ValidationError("Identity provider data is incomplete.", code="missing_field")
        email = normalize_email(dto.email)

        try:
            with self.rw_uow() as uow:
                user = uow.users.get_by_google_id(dto.google_id)
                if user is None:
                    user = uow.users.get_by_email(email)
                    if user is not None and user.has_password:
                        raise ConflictError(
                            "User",
                            "Email is already registered with a password.",
                            "email_already_registered",
                        )
                    if user is not None:
                        uow.users.update(
                            user, google_id=dto.google_id, picture=dto.picture or user.picture
                        )
                    else:
                        user = uow.users.add(
                            User(
                                email=email,
                                google_id=dto.google_id,
                                name=dto.name or email.split("@", 1)[0],
                                picture=dto.picture,
                                status=UserStatus.ACTIVE,
                                role=UserRole.USER,
                            )
                        )
                        logger.info("Federated account created", extra={"user_id": user.id})
                out = user_out(user)
        except IntegrityError as exc:
            raise ConflictError(
                "User", "Account is already linked.", "email_already_registered"
            ) from exc

        return self._start_session(out)

    # ------------------------------------------------------------------ #
    # Logout / whoami
    # ------------------------------------------------------------------ #

    def logout(self, *, jti: str, expires_at: datetime) -> AckOut:
        """Revoke one session until its natural expiry. Idempotent."""
        self.denylist.revoke(jti=jti, expires_at=expires_at)
        return AckOut(message="Signed out.")

    def me(self, user_id: int) -> UserOut:
        with self.ro_uow() as uow:
            user = uow.users.get(user_id)
            if user is None:
                raise AuthenticationError("Account no longer exists.", code="unknown_subject")
            return user_out(user)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _start_session(self, user: UserOut) -> SessionOut:
        token = self.tokens.issue_session(user.id, user.email, user.role)
        try:
            self.carts.get_or_create_open_cart(user.id)
        except (ServiceError, SQLAlchemyError):
            logger.warning("Cart provisioning failed", extra={"user_id": user.id}, exc_info=True)
        return SessionOut(
            token=token,
            expires_in=int(self.tokens.config.ttl.total_seconds()),
            user=user,
        )
