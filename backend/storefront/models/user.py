"""User model: the single account entity for credentials, role and lifecycle."""

from __future__ import annotations

from enum import Enum
from typing import Any

from flask import current_app, has_app_context
from sqlalchemy import Enum as SAEnum
from sqlalchemy import Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, validates

from storefront.core.extensions import db
from storefront.core.security import DEFAULT_BCRYPT_ROUNDS, hash_password, verify_password

from .base import PKMixin, ReprMixin, TimestampMixin, enum_values


class UserStatus(str, Enum):
    """Account lifecycle: ``pending`` until the email is confirmed."""

    PENDING = "pending"
    ACTIVE = "active"


class UserRole(str, Enum):
    """Authorization role compared by admin-only operations."""

    USER = "user"
    ADMIN = "admin"


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Account identity.

    Fields
    ------
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique.
    google_id : str | None
        Federated identity id; unique when present.
    password_hash : str | None
        bcrypt hash; ``None`` for federated-only accounts.
    name : str
        Display name.
    picture : str | None
        Avatar URL from the identity provider.
    status : UserStatus
        ``pending`` until confirmation, then ``active``.
    role : UserRole
        ``user`` or ``admin``.
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(254), nullable=False)
    google_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    password_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    picture: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[UserStatus] = mapped_column(
        SAEnum(
            UserStatus,
            name="user_status",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=16,
        ),
        nullable=False,
        default=UserStatus.PENDING,
    )
    role: Mapped[UserRole] = mapped_column(
        SAEnum(
            UserRole,
            name="user_role",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=16,
        ),
        nullable=False,
        default=UserRole.USER,
    )

    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("google_id", name="uq_users_google_id"),
        Index("ix_users_status_created_at", "status", "created_at"),
    )

    # -------------------- Password API --------------------
    @property
    def password(self) -> Any:  # pragma: no cover - explicit write-only contract
        """
        Disallow reading passwords.

        :raises AttributeError: Always, to ensure password is write-only.
        """
        raise AttributeError("Password is write-only.")

    @password.setter
    def password(self, raw: str) -> None:
        rounds = DEFAULT_BCRYPT_ROUNDS
        if has_app_context():
            rounds = int(current_app.config.get("BCRYPT_LOG_ROUNDS", DEFAULT_BCRYPT_ROUNDS))
        self.set_password(raw, rounds=rounds)

    def set_password(self, raw: str, *, rounds: int = DEFAULT_BCRYPT_ROUNDS) -> None:
        """
        Hash and store ``raw``.

        :param raw: Plain text password.
        :param rounds: bcrypt cost factor (clamped to the minimum cost).
        :raises ValueError: If ``raw`` is empty.
        """
        if not isinstance(raw, str) or not raw:
            raise ValueError("Password must be a non-empty string.")
        self.password_hash = hash_password(raw, rounds=rounds)

    def verify_password(self, raw: str) -> bool:
        """Return ``True`` when ``raw`` matches the stored hash."""
        return verify_password(raw, self.password_hash)

    @property
    def has_password(self) -> bool:
        return bool(self.password_hash)

    @property
    def is_active(self) -> bool:
        return self.status == UserStatus.ACTIVE

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    # -------------------- Validators --------------------
    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """
        Normalize and sanity-check the email.

        :raises ValueError: If the email is missing or malformed.
        """
        if not value or not isinstance(value, str):
            raise ValueError("Email is required.")
        v = value.strip().lower()
        if "@" not in v or "." not in v.split("@")[-1]:
            raise ValueError("Email format looks invalid.")
        return v

    @validates("name")
    def _normalize_name(self, key: str, value: str | None) -> str:
        return (value or "").strip()
