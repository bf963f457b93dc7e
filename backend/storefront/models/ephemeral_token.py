"""Single-use, time-bounded grants gating confirmation and password reset."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.extensions import db

from .base import PKMixin, ReprMixin, as_utc, enum_values, utcnow


class TokenPurpose(str, Enum):
    CONFIRM_REGISTRATION = "confirm_registration"
    RESET_PASSWORD = "reset_password"


class TokenStatus(str, Enum):
    """``unconfirmed`` is the only actionable state; the others are terminal."""

    UNCONFIRMED = "unconfirmed"
    CONFIRMED = "confirmed"
    USED = "used"
    EXPIRED = "expired"


class EphemeralToken(PKMixin, ReprMixin, db.Model):
    """
    Bearer grant owned by a user.

    Only the SHA-256 digest of the random value is stored; lookups hash the
    presented value and match the digest exactly.

    Fields
    ------
    user_id : int
        Owning user.
    purpose : TokenPurpose
        What the grant unlocks.
    token_digest : str
        Hex SHA-256 of the bearer value. Unique.
    status : TokenStatus
        Resolution state.
    created_at : datetime
        Issuance time; the TTL is measured from here.
    resolved_at : datetime | None
        When the token left ``unconfirmed``.
    """

    __tablename__ = "ephemeral_tokens"

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    purpose: Mapped[TokenPurpose] = mapped_column(
        SAEnum(
            TokenPurpose,
            name="token_purpose",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=32,
        ),
        nullable=False,
    )
    token_digest: Mapped[str] = mapped_column(String(64), nullable=False)
    status: Mapped[TokenStatus] = mapped_column(
        SAEnum(
            TokenStatus,
            name="token_status",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=16,
        ),
        nullable=False,
        default=TokenStatus.UNCONFIRMED,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    resolved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    user = relationship("User", lazy="joined")

    __table_args__ = (
        UniqueConstraint("token_digest", name="uq_ephemeral_tokens_token_digest"),
        Index("ix_ephemeral_tokens_user_purpose", "user_id", "purpose"),
        Index("ix_ephemeral_tokens_sweep", "purpose", "status", "created_at"),
    )

    @property
    def is_unresolved(self) -> bool:
        return self.status == TokenStatus.UNCONFIRMED

    def is_expired(self, *, now: datetime, ttl: timedelta) -> bool:
        """Return ``True`` once more than ``ttl`` has elapsed since issuance."""
        return as_utc(now) - as_utc(self.created_at) > ttl
