# storefront/services/session/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class Identity:
    """
    Authenticated caller attached to the request context.

    :param user_id: Resolved user id.
    :type user_id: int
    :param email: Current email of the user.
    :type email: str
    :param role: Current role (``user`` or ``admin``).
    :type role: str
    :param status: Current account status.
    :type status: str
    :param jti: Session token id; used by logout.
    :type jti: str
    :param expires_at: Session expiry (aware UTC).
    :type expires_at: datetime
    """

    user_id: int
    email: str
    role: str
    status: str
    jti: str
    expires_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
