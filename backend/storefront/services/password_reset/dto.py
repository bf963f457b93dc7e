from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class ResetPasswordIn:
    """
    :param token: Raw reset token from the emailed link.
    :type token: str
    :param new_password: Replacement password.
    :type new_password: str
    """

    token: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ChangePasswordIn:
    """
    :param user_id: Authenticated user.
    :type user_id: int
    :param current_password: Password the user signs in with today.
    :type current_password: str
    :param new_password: Replacement password.
    :type new_password: str
    """

    user_id: int
    current_password: str
    new_password: str


@dataclass(frozen=True, slots=True)
class ResetTokenCheckOut:
    """
    Read-only verdict on a reset token.

    :param valid: Whether the token can still be redeemed.
    :type valid: bool
    :param reason: ``token_not_found``, ``token_already_used`` or
        ``token_expired`` when not valid.
    :type reason: str | None
    """

    valid: bool
    reason: str | None = None
