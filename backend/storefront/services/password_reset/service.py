"""
PasswordResetService: forgot/reset through single-use tokens, plus the
authenticated change-password operation.

``forgot_password`` answers identically whether or not the address is known.
"""

from __future__ import annotations

import logging

from storefront.models.ephemeral_token import EphemeralToken, TokenPurpose, TokenStatus
from storefront.services._shared.base import BaseService, Clock
from storefront.services._shared.dto import AckOut
from storefront.services._shared.errors import (
    AlreadyResolvedError,
    AuthenticationError,
    EmailDispatchError,
    ExpiredError,
    NotFoundError,
    ValidationError,
)
from storefront.services._shared.mail import reset_email, send_with_deadline
from storefront.services._shared.policies.credentials import check_password, normalize_email
from storefront.services._shared.ports.email_sender import EmailSender
from storefront.services._shared.settings import AccountSettings
from storefront.services.password_reset.dto import (
    ChangePasswordIn,
    ResetPasswordIn,
    ResetTokenCheckOut,
)
from storefront.services.tokens.service import TokenIssuer

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_ACK = "If an account exists for that email, a reset link has been sent."
_PURPOSE = TokenPurpose.RESET_PASSWORD


class PasswordResetService(BaseService):
    def __init__(
        self,
        *,
        tokens: TokenIssuer,
        mailer: EmailSender,
        settings: AccountSettings | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.tokens = tokens
        self.mailer = mailer
        self.settings = settings or AccountSettings()

    # ------------------------------------------------------------------ #
    # Forgot
    # ------------------------------------------------------------------ #

    def forgot_password(self, email: str | None) -> AckOut:
        """
        Issue a reset token for accounts that have a password.

        Earlier unresolved reset tokens are expired first, so only the newest
        link works. Dispatch failures are logged and never surfaced.
        """
        address = normalize_email(email)
        if not address:
            raise ValidationError("Email is required.", code="missing_field", field="email")

        raw_token: str | None = None
        with self.rw_uow() as uow:
            user = uow.users.get_by_email(address)
            if user is not None and user.has_password:
                now = self.now_utc()
                uow.tokens.expire_unresolved(user.id, _PURPOSE, now=now)
                raw_token = self.tokens.new_ephemeral_token()
                uow.tokens.add(
                    EphemeralToken(
                        user_id=user.id,
                        purpose=_PURPOSE,
                        token_digest=self.tokens.digest(raw_token),
                        created_at=now,
                    )
                )
                user_id = user.id

        if raw_token is not None:
            logger.info(
                "Reset token issued", extra={"user_id": user_id, "purpose": _PURPOSE.value}
            )
            message = reset_email(
                to=address,
                token=raw_token,
                base_url=self.settings.frontend_url,
                ttl_minutes=self.settings.reset_ttl_minutes,
            )
            try:
                send_with_deadline(self.mailer, message, timeout=self.settings.email_timeout)
            except EmailDispatchError:
                logger.warning("Reset email not delivered", extra={"user_id": user_id})

        return AckOut(message=FORGOT_PASSWORD_ACK)

    # ------------------------------------------------------------------ #
    # Validate
    # ------------------------------------------------------------------ #

    def validate_reset_token(self, token: str | None) -> ResetTokenCheckOut:
        """Report whether ``token`` could be redeemed now. Never consumes it."""
        if not token:
            return ResetTokenCheckOut(valid=False, reason="token_not_found")

        digest = self.tokens.digest(token)
        now = self.now_utc()
        with self.ro_uow() as uow:
            record = uow.tokens.get_by_digest(digest)
            if record is None or record.purpose != _PURPOSE:
                return ResetTokenCheckOut(valid=False, reason="token_not_found")
            if not record.is_unresolved:
                return ResetTokenCheckOut(valid=False, reason="token_already_used")
            if record.is_expired(now=now, ttl=self.settings.reset_ttl):
                return ResetTokenCheckOut(valid=False, reason="token_expired")
        return ResetTokenCheckOut(valid=True)

    # ------------------------------------------------------------------ #
    # Reset
    # ------------------------------------------------------------------ #

    def reset_password(self, dto: ResetPasswordIn) -> AckOut:
        """
        Redeem a reset token and store the new password, atomically.

        :raises NotFoundError: ``token_not_found``.
        :raises AlreadyResolvedError: ``token_already_used`` (single winner).
        :raises ExpiredError: ``token_expired``.
        :raises ValidationError: ``password_too_short`` / ``missing_field``.
        """
        if not dto.token:
            raise ValidationError("Token is required.", code="missing_field", field="token")

        digest = self.tokens.digest(dto.token)
        now = self.now_utc()
        with self.rw_uow() as uow:
            record = uow.tokens.get_by_digest(digest)
            if record is None or record.purpose != _PURPOSE:
                raise NotFoundError("Token", "reset", "token_not_found")
            if not record.is_unresolved:
                raise AlreadyResolvedError("Reset link has already been used.")
            if record.is_expired(now=now, ttl=self.settings.reset_ttl):
                raise ExpiredError("Reset link has expired. Please request a new one.")

            password = check_password(
                dto.new_password,
                min_length=self.settings.password_min_length,
                field="new_password",
            )
            if not uow.tokens.transition(record.id, to_status=TokenStatus.USED, resolved_at=now):
                raise AlreadyResolvedError("Reset link has already been used.")
            uow.users.update_password(record.user_id, password, rounds=self.settings.bcrypt_rounds)
            user_id = record.user_id

        logger.info("Password reset", extra={"user_id": user_id, "purpose": _PURPOSE.value})
        return AckOut(message="Password updated. You can now sign in.")

    # ------------------------------------------------------------------ #
    # Change (authenticated)
    # ------------------------------------------------------------------ #

    def change_password(self, dto: ChangePasswordIn) -> AckOut:
        """
        :raises ValidationError: ``password_not_set`` for federated-only
            accounts, or a password policy code.
        :raises AuthenticationError: ``invalid_credentials`` when the current
            password does not match.
        """
        new_password = check_password(
            dto.new_password,
            min_length=self.settings.password_min_length,
            field="new_password",
        )
        with self.rw_uow() as uow:
            user = uow.users.get(dto.user_id)
            if user is None:
                raise NotFoundError("User", dto.user_id, "not_found")
            if not user.has_password:
                raise ValidationError(
                    "This account signs in with Google and has no password.",
                    code="password_not_set",
                )
            if not user.verify_password(dto.current_password or ""):
                raise AuthenticationError("Current password is incorrect.")
            user.set_password(new_password, rounds=self.settings.bcrypt_rounds)
            uow.users.flush()

        logger.info("Password changed", extra={"user_id": dto.user_id})
        return AckOut(message="Password changed.")

