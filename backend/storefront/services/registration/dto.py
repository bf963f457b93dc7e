"""
DTOs for RegistrationService.

Contracts for self-registration and email confirmation.
"""

from __future__ import annotations

from dataclasses import dataclass

# --------------------------------------------------------------------------- #
# Input
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationIn:
    """
    Input payload for the registration process.

    :param email: Login email (normalized to lowercase+trim).
    :type email: str
    :param password: Raw password (hashed before storage).
    :type password: str
    :param name: Display name.
    :type name: str
    """

    email: str
    password: str
    name: str


# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationOut:
    """
    Outcome of a registration.

    :param status: ``pending`` (confirmation email sent) or ``active``
        (auto-confirmed).
    :type status: str
    :param message: Human-readable next step.
    :type message: str
    :param user_id: Identifier of the created user.
    :type user_id: int
    """

    status: str
    message: str
    user_id: int


@dataclass(frozen=True, slots=True)
class ConfirmationOut:
    status: str
    message: str
    user_id: int
