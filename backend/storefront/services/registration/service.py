"""
RegistrationService: sign-up with an emailed, single-use confirmation token.

Flow
----
1. Validate email (format + domain policy), password length and name.
2. Reject emails that already belong to a user.
3. In one transaction: create the ``pending`` user, issue the confirmation
   token, then either auto-confirm or send the email under a deadline. A
   failed send rolls everything back, so no orphaned pending user remains.
4. After commit, provision the user's open cart (failure is only logged).
"""

from __future__ import annotations

import logging

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from storefront.models.ephemeral_token import EphemeralToken, TokenPurpose, TokenStatus
from storefront.models.user import User, UserRole, UserStatus
from storefront.services._shared.base import BaseService, Clock
from storefront.services._shared.errors import (
    AlreadyResolvedError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ServiceError,
    ValidationError,
    violates,
)
from storefront.services._shared.mail import confirmation_email, send_with_deadline
from storefront.services._shared.policies.credentials import (
    check_email,
    check_name,
    check_password,
)
from storefront.services._shared.ports.email_sender import EmailSender
from storefront.services._shared.settings import AccountSettings
from storefront.services.cart.service import CartLedger
from storefront.services.registration.dto import (
    ConfirmationOut,
    RegistrationIn,
    RegistrationOut,
)
from storefront.services.tokens.service import TokenIssuer

logger = logging.getLogger(__name__)


def email_taken() -> ConflictError:
    return ConflictError("User", "Email is already registered.", "email_already_registered")


class RegistrationService(BaseService):
    """Create accounts and confirm them through single-use tokens."""

    def __init__(
        self,
        *,
        tokens: TokenIssuer,
        mailer: EmailSender,
        settings: AccountSettings | None = None,
        carts: CartLedger | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.tokens = tokens
        self.mailer = mailer
        self.settings = settings or AccountSettings()
        self.carts = carts or CartLedger(clock=self.clock)

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegistrationIn) -> RegistrationOut:
        """
        :raises ValidationError: ``missing_field``, ``invalid_email``,
            ``email_domain_not_allowed`` or ``password_too_short``.
        :raises ConflictError: ``email_already_registered``.
        :raises EmailDispatchError: Confirmation email could not be sent; nothing
            was persisted.
        """
        cfg = self.settings
        email = check_email(dto.email, allowed_domains=cfg.allowed_domains)
        password = check_password(dto.password, min_length=cfg.password_min_length)
        name = check_name(dto.name)

        try:
            with self.rw_uow() as uow:
                if uow.users.get_by_email(email) is not None:
                    raise email_taken()

                user = User(email=email, name=name, status=UserStatus.PENDING, role=UserRole.USER)
                user.set_password(password, rounds=cfg.bcrypt_rounds)
                uow.users.add(user)

                now = self.now_utc()
                raw_token = self.tokens.new_ephemeral_token()
                token = uow.tokens.add(
                    EphemeralToken(
                        user_id=user.id,
                        purpose=TokenPurpose.CONFIRM_REGISTRATION,
                        token_digest=self.tokens.digest(raw_token),
                        created_at=now,
                    )
                )

                if cfg.auto_confirm:
                    uow.tokens.transition(
                        token.id, to_status=TokenStatus.CONFIRMED, resolved_at=now
                    )
                    uow.users.activate(user.id)
                    status = UserStatus.ACTIVE
                else:
                    message = confirmation_email(
                        to=email,
                        name=name,
                        token=raw_token,
                        base_url=cfg.frontend_url,
                        ttl_minutes=cfg.confirm_ttl_minutes,
                    )
                    send_with_deadline(self.mailer, message, timeout=cfg.email_timeout)
                    status = UserStatus.PENDING
                user_id = user.id
        except IntegrityError as exc:
            if violates(exc, "uq_users_email") or violates(exc, "users.email"):
                raise email_taken() from exc
            raise

        logger.info("User registered", extra={"user_id": user_id})
        self._provision_cart(user_id)

        if status == UserStatus.ACTIVE:
            text = "Account created and activated. You can sign in now."
        else:
            text = (
                "Account created. Check your email and confirm within "
                f"{cfg.confirm_ttl_minutes} minutes."
            )
        return RegistrationOut(status=status.value, message=text, user_id=user_id)

    # ------------------------------------------------------------------ #
    # Confirm
    # ------------------------------------------------------------------ #

    def confirm_email(self, token: str | None) -> ConfirmationOut:
        """
        Resolve a confirmation token and activate its user.

        The TTL is evaluated here, at read time, so a token the sweep has not
        reached yet is still rejected once it is too old.

        :raises NotFoundError: ``token_not_found``.
        :raises AlreadyResolvedError: ``token_already_used`` (also for the
            loser of two concurrent confirmations).
        :raises ExpiredError: ``token_expired``.
        """
        if not token:
            raise ValidationError("Token is required.", code="missing_field", field="token")

        digest = self.tokens.digest(token)
        now = self.now_utc()
        with self.rw_uow() as uow:
            record = uow.tokens.get_by_digest(digest)
            if record is None or record.purpose != TokenPurpose.CONFIRM_REGISTRATION:
                raise NotFoundError("Token", "confirmation", "token_not_found")
            if not record.is_unresolved:
                raise AlreadyResolvedError("Email has already been confirmed.")
            if record.is_expired(now=now, ttl=self.settings.confirm_ttl):
                raise ExpiredError("Confirmation link has expired. Please register again.")

            if not uow.tokens.transition(
                record.id, to_status=TokenStatus.CONFIRMED, resolved_at=now
            ):
                raise AlreadyResolvedError("Email has already been confirmed.")
            uow.users.activate(record.user_id)
            user_id = record.user_id

        logger.info(
            "Email confirmed",
            extra={"user_id": user_id, "purpose": TokenPurpose.CONFIRM_REGISTRATION.value},
        )
        return ConfirmationOut(
            status=UserStatus.ACTIVE.value,
            message="Email confirmed. You can now sign in.",
            user_id=user_id,
        )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _provision_cart(self, user_id: int) -> None:
        try:
            self.carts.get_or_create_open_cart(user_id)
        except (ServiceError, SQLAlchemyError):
            logger.warning("Cart provisioning failed", extra={"user_id": user_id}, exc_info=True)
