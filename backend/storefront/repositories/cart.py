"""Cart repository: open-cart singleton, item lines and the order transition."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import cast

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError

from storefront.models.cart import Cart, CartItem, CartStatus, OrderStatus
from storefront.repositories.base import BaseRepository, Page, Pagination

logger = logging.getLogger(__name__)


class CartRepository(BaseRepository[Cart]):
    """Persistence for :class:`Cart` and its :class:`CartItem` lines."""

    model = Cart

    def _sortable_fields(self):
        return {
            "id": Cart.id,
            "created_at": Cart.created_at,
            "checked_out_at": Cart.checked_out_at,
        }

    # ---------------------------- Lookups ----------------------------

    def get_open_by_user(self, user_id: int) -> Cart | None:
        stmt = select(Cart).where(Cart.user_id == user_id, Cart.status == CartStatus.OPEN)
        return cast(Cart | None, self.session.execute(stmt).scalars().first())

    def get_latest_closed_by_user(self, user_id: int) -> Cart | None:
        stmt = (
            select(Cart)
            .where(Cart.user_id == user_id, Cart.status == CartStatus.CLOSED)
            .order_by(Cart.checked_out_at.desc(), Cart.id.desc())
            .limit(1)
        )
        return cast(Cart | None, self.session.execute(stmt).scalars().first())

    def get_owned(self, cart_id: int, user_id: int) -> Cart | None:
        stmt = select(Cart).where(Cart.id == cart_id, Cart.user_id == user_id)
        return cast(Cart | None, self.session.execute(stmt).scalars().first())

    # ---------------------------- Lifecycle ----------------------------

    def create_open(self, user_id: int) -> tuple[Cart, bool]:
        """Insert an open cart for ``user_id`` unless another request already did.

        The insert runs inside a SAVEPOINT; a violation of the one-open-cart
        index rolls back only that savepoint and the winner's row is returned.

        :returns: ``(cart, created)``.
        :raises IntegrityError: If the insert failed for another reason.
        """
        try:
            with self.session.begin_nested():
                cart = Cart(user_id=user_id, status=CartStatus.OPEN)
                self.session.add(cart)
        except IntegrityError:
            existing = self.get_open_by_user(user_id)
            if existing is None:
                raise
            logger.info("Open cart already present", extra={"user_id": user_id})
            return existing, False
        return cart, True

    def close(self, cart_id: int, *, now: datetime) -> bool:
        """Transition ``open → closed`` and start fulfilment at ``processing``.

        :returns: ``True`` only for the caller whose update matched the open row.
        """
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.status == CartStatus.OPEN)
            .values(
                status=CartStatus.CLOSED,
                order_status=OrderStatus.PROCESSING,
                checked_out_at=now,
                updated_at=now,
            )
        )
        return self.session.execute(stmt).rowcount == 1

    def update_order_status(self, cart_id: int, status: OrderStatus) -> bool:
        """Relabel a closed cart; open or unknown carts are left untouched."""
        stmt = (
            update(Cart)
            .where(Cart.id == cart_id, Cart.status == CartStatus.CLOSED)
            .values(order_status=status)
        )
        return self.session.execute(stmt).rowcount == 1

    # ---------------------------- Items ----------------------------

    def items_with_products(self, cart_id: int) -> list[CartItem]:
        """Lines of ``cart_id`` with their products joined, in insertion order."""
        stmt = select(CartItem).where(CartItem.cart_id == cart_id).order_by(CartItem.id.asc())
        return list(self.session.execute(stmt).scalars().unique().all())

    def find_item(self, cart: Cart, *, item_id: int | None = None, product_id: int | None = None):
        for item in cart.items:
            if item_id is not None and item.id == item_id:
                return item
            if product_id is not None and item.product_id == product_id:
                return item
        return None

    def increment_item(self, cart_id: int, product_id: int, quantity: int) -> CartItem | None:
        """Add ``quantity`` to an existing line in SQL; ``None`` when no line matched."""
        stmt = (
            update(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .values(quantity=CartItem.quantity + quantity)
            .execution_options(synchronize_session=False)
        )
        if self.session.execute(stmt).rowcount != 1:
            return None
        fresh = (
            select(CartItem)
            .where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
            .execution_options(populate_existing=True)
        )
        return cast(CartItem, self.session.execute(fresh).scalars().one())

    def merge_item(self, cart: Cart, product_id: int, quantity: int) -> tuple[CartItem, bool]:
        """Increment the line for ``product_id`` or insert it.

        The insert runs inside a SAVEPOINT; losing to a concurrent insert on
        ``uq_cart_items_cart_product`` falls back to the increment.

        :returns: ``(item, created)``.
        """
        item = self.increment_item(cart.id, product_id, quantity)
        created = False
        if item is None:
            try:
                with self.session.begin_nested():
                    item = CartItem(cart_id=cart.id, product_id=product_id, quantity=quantity)
                    self.session.add(item)
                created = True
            except IntegrityError:
                item = self.increment_item(cart.id, product_id, quantity)
                if item is None:
                    raise
                logger.info("Cart line already present", extra={"cart_id": cart.id})
        self.session.expire(cart, ["items"])
        return item, created

    def update_item(self, item: CartItem, quantity: int) -> CartItem:
        item.quantity = quantity
        self.flush()
        return item

    def remove_item(self, cart: Cart, item: CartItem) -> None:
        # delete-orphan cascade turns the collection removal into a DELETE
        cart.items.remove(item)
        self.flush()

    def clear_items(self, cart: Cart) -> int:
        removed = len(cart.items)
        cart.items.clear()
        self.flush()
        return removed

    # ---------------------------- Orders ----------------------------

    def count_closed(self) -> int:
        stmt = select(func.count()).select_from(Cart).where(Cart.status == CartStatus.CLOSED)
        return int(self.session.execute(stmt).scalar_one())

    def list_closed(self, pagination: Pagination, *, user_id: int | None = None) -> Page[Cart]:
        """Closed carts (orders), optionally restricted to one owner."""
        stmt = select(Cart).where(Cart.status == CartStatus.CLOSED)
        if user_id is not None:
            stmt = stmt.where(Cart.user_id == user_id)
        return self.paginate_statement(stmt, pagination)
