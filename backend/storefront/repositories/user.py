"""User repository: lookups, credential writes and pending-account cleanup."""

from __future__ import annotations

from typing import cast

from sqlalchemy import delete, select, update

from storefront.models.cart import Cart, CartItem
from storefront.models.ephemeral_token import EphemeralToken
from storefront.models.user import User, UserStatus
from storefront.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    Session issuance lives in the token service; this class only reads and
    writes rows.
    """

    model = User

    # ---------------------------- Whitelists ----------------------------

    def _sortable_fields(self):
        return {
            "id": User.id,
            "email": User.email,
            "created_at": User.created_at,
        }

    def _updatable_fields(self):
        """Profile fields only; password and status have dedicated writers."""
        return {"name", "picture", "google_id", "role"}

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        return cast(User | None, self.session.execute(stmt).scalars().first())

    def get_by_google_id(self, google_id: str) -> User | None:
        stmt = select(User).where(User.google_id == google_id)
        return cast(User | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Writers ----------------------------

    def update_password(self, user_id: int, new_password: str, *, rounds: int) -> None:
        """Hash and store a new password for ``user_id``.

        :raises ValueError: If the user does not exist.
        """
        user = self.get(user_id)
        if not user:
            raise ValueError(f"User {user_id} not found.")
        user.set_password(new_password, rounds=rounds)
        self.flush()

    def activate(self, user_id: int) -> bool:
        """Flip ``pending → active``; ``False`` when the user was not pending."""
        stmt = (
            update(User)
            .where(User.id == user_id, User.status == UserStatus.PENDING)
            .values(status=UserStatus.ACTIVE)
        )
        return self.session.execute(stmt).rowcount == 1

    def hard_delete_pending(self, user_id: int) -> bool:
        """Physically remove a still-pending user and everything it owns.

        Child rows are deleted explicitly so the outcome does not depend on the
        backend enforcing ``ON DELETE CASCADE``.

        :returns: ``True`` when the user row was removed; ``False`` when it no
            longer exists or is no longer pending (nothing is touched then).
        """
        still_pending = self.session.execute(
            select(User.id).where(User.id == user_id, User.status == UserStatus.PENDING)
        ).first()
        if still_pending is None:
            return False

        cart_ids = select(Cart.id).where(Cart.user_id == user_id).scalar_subquery()
        no_sync = {"synchronize_session": False}
        self.session.execute(
            delete(CartItem).where(CartItem.cart_id.in_(cart_ids)).execution_options(**no_sync)
        )
        self.session.execute(delete(Cart).where(Cart.user_id == user_id).execution_options(**no_sync))
        self.session.execute(
            delete(EphemeralToken)
            .where(EphemeralToken.user_id == user_id)
            .execution_options(**no_sync)
        )
        result = self.session.execute(
            delete(User)
            .where(User.id == user_id, User.status == UserStatus.PENDING)
            .execution_options(**no_sync)
        )
        return result.rowcount == 1
