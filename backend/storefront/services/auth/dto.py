# storefront/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class FederatedLoginIn:
    """
    Identity asserted by an external provider after its code exchange.

    :param google_id: Provider subject id.
    :type google_id: str
    :param email: Verified email.
    :type email: str
    :param name: Display name.
    :type name: str | None
    :param picture: Avatar URL.
    :type picture: str | None
    """

    google_id: str
    email: str
    name: str | None = None
    picture: str | None = None


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public-safe user representation.

    :param id: User id.
    :type id: int
    :param email: Email address.
    :type email: str
    :param name: Display name.
    :type name: str
    :param role: ``user`` or ``admin``.
    :type role: str
    :param status: ``pending`` or ``active``.
    :type status: str
    :param picture: Avatar URL.
    :type picture: str | None
    :param has_password: Whether password sign-in is possible.
    :type has_password: bool
    """

    id: int
    email: str
    name: str
    role: str
    status: str
    picture: str | None
    has_password: bool


@dataclass(frozen=True, slots=True)
class SessionOut:
    """
    Issued session.

    :param token: Signed session JWT.
    :type token: str
    :param expires_in: Lifetime in seconds.
    :type expires_in: int
    :param user: Signed-in user.
    :type user: UserOut
    """

    token: str
    expires_in: int
    user: UserOut
