# storefront/services/cart/service.py
from __future__ import annotations

import logging
from decimal import Decimal

from storefront.models.cart import Cart, CartItem, CartStatus, OrderStatus
from storefront.services._shared.base import BaseService
from storefront.services._shared.dto import PageMeta, PaginationIn
from storefront.services._shared.errors import (
    NoActiveCartError,
    NotFoundError,
    OutOfStockError,
    ValidationError,
)
from storefront.services.cart.dto import (
    CartItemOut,
    CartOut,
    CheckoutOut,
    DashboardStatsOut,
    OrderListOut,
)

logger = logging.getLogger(__name__)


class CartLedger(BaseService):
    """
    Per-user cart and order state machine.

    Guarantees
    ----------
    * At most one ``open`` cart per user. Creation is race-safe: a losing
      insert falls back to the winner's cart.
    * ``open → closed`` happens exactly once, through a conditional update.
      Repeated or concurrent checkouts observe ``already_closed``.
    * Closed carts are never reopened; the next cart access starts a new one.
    """

    # ------------------------------------------------------------------ #
    # Cart
    # ------------------------------------------------------------------ #

    def get_or_create_open_cart(self, user_id: int) -> CartOut:
        with self.rw_uow() as uow:
            cart = self._open_cart(uow, user_id)
            return self._to_out(cart)

    def add_item(self, user_id: int, product_id: int, quantity: int) -> CartOut:
        """
        Add ``quantity`` units of a product, merging with an existing line.

        :raises ValidationError: ``invalid_quantity`` when ``quantity < 1``.
        :raises NotFoundError: ``product_not_found``.
        :raises OutOfStockError: When ``quantity`` exceeds the product stock.
        """
        self._ensure_quantity(quantity)
        with self.rw_uow() as uow:
            product = uow.products.get(product_id)
            if product is None:
                raise NotFoundError("Product", product_id, "product_not_found")
            if quantity > product.stock:
                raise OutOfStockError(product.id, quantity, product.stock)

            cart = self._open_cart(uow, user_id)
            uow.carts.merge_item(cart, product.id, quantity)
            return self._to_out(cart)

    def update_item_quantity(self, user_id: int, item_id: int, quantity: int) -> CartOut:
        """
        Set a line's quantity; zero or less removes the line.

        :raises NotFoundError: ``cart_item_not_found`` unless the line belongs
            to the caller's open cart.
        :raises OutOfStockError: When ``quantity`` exceeds the product stock.
        """
        if not isinstance(quantity, int) or isinstance(quantity, bool):
            raise ValidationError(
                "Quantity must be an integer.", code="invalid_quantity", field="quantity"
            )
        with self.rw_uow() as uow:
            cart = uow.carts.get_open_by_user(user_id)
            item = uow.carts.find_item(cart, item_id=item_id) if cart is not None else None
            if cart is None or item is None:
                raise NotFoundError("CartItem", item_id, "cart_item_not_found")

            if quantity <= 0:
                uow.carts.remove_item(cart, item)
            else:
                if quantity > item.product.stock:
                    raise OutOfStockError(item.product_id, quantity, item.product.stock)
                uow.carts.update_item(item, quantity)
            return self._to_out(cart)

    def remove_item(self, user_id: int, item_id: int) -> CartOut:
        """Remove a line; removing a missing line is a no-op."""
        with self.rw_uow() as uow:
            cart = self._open_cart(uow, user_id)
            item = uow.carts.find_item(cart, item_id=item_id)
            if item is not None:
                uow.carts.remove_item(cart, item)
            return self._to_out(cart)

    def clear_cart(self, user_id: int) -> CartOut:
        with self.rw_uow() as uow:
            cart = self._open_cart(uow, user_id)
            uow.carts.clear_items(cart)
            return self._to_out(cart)

    # ------------------------------------------------------------------ #
    # Checkout
    # ------------------------------------------------------------------ #

    def checkout(self, user_id: int, cart_id: int | None = None) -> CheckoutOut:
        """
        Close the caller's open cart.

        Without ``cart_id`` the open cart is used; when there is none, the
        most recently closed cart answers with ``already_closed=True`` so a
        retried request stays benign.

        :raises NoActiveCartError: If the caller has no cart at all (or
            ``cart_id`` is not theirs).
        """
        now = self.now_utc()
        with self.rw_uow() as uow:
            if cart_id is not None:
                cart = uow.carts.get_owned(cart_id, user_id)
            else:
                cart = uow.carts.get_open_by_user(user_id) or uow.carts.get_latest_closed_by_user(
                    user_id
                )
            if cart is None:
                raise NoActiveCartError(user_id)

            total = self._total(cart.items)
            if cart.status != CartStatus.OPEN:
                return self._already_closed(cart, total)

            if not uow.carts.close(cart.id, now=now):
                logger.info("Checkout lost race", extra={"user_id": user_id, "cart_id": cart.id})
                uow.session.refresh(cart)
                return self._already_closed(cart, total)

            logger.info("Cart checked out", extra={"user_id": user_id, "cart_id": cart.id})
            return CheckoutOut(
                cart_id=cart.id,
                status=CartStatus.CLOSED.value,
                already_closed=False,
                total=total,
                order_status=OrderStatus.PROCESSING.value,
            )

    # ------------------------------------------------------------------ #
    # Orders
    # ------------------------------------------------------------------ #

    def list_orders(self, user_id: int, page: PaginationIn | None = None) -> OrderListOut:
        """Order history (closed carts) of one user, newest first by default."""
        page = page or PaginationIn()
        pagination = self.ensure_pagination(
            page=page.page, limit=page.limit, sort=page.sort or ["-checked_out_at"]
        )
        with self.ro_uow() as uow:
            result = uow.carts.list_closed(pagination, user_id=user_id)
            return self._to_list(result)

    def list_all_orders(self, actor_role, page: PaginationIn | None = None) -> OrderListOut:
        self.ensure_admin(actor_role)
        page = page or PaginationIn()
        pagination = self.ensure_pagination(
            page=page.page, limit=page.limit, sort=page.sort or ["-checked_out_at"]
        )
        with self.ro_uow() as uow:
            result = uow.carts.list_closed(pagination)
            return self._to_list(result)

    def update_order_status(self, actor_role, order_id: int, status: str) -> CartOut:
        """
        Relabel a closed cart's fulfilment status (admin only).

        :raises AuthorizationError: For non-admin callers.
        :raises ValidationError: ``invalid_order_status``.
        :raises NotFoundError: ``order_not_found`` for open or unknown carts.
        """
        self.ensure_admin(actor_role)
        try:
            new_status = OrderStatus(str(status).strip().lower())
        except ValueError as exc:
            allowed = ", ".join(s.value for s in OrderStatus)
            raise ValidationError(
                f"Status must be one of: {allowed}.", code="invalid_order_status", field="status"
            ) from exc

        with self.rw_uow() as uow:
            if not uow.carts.update_order_status(order_id, new_status):
                raise NotFoundError("Order", order_id, "order_not_found")
            cart = uow.carts.get(order_id)
            logger.info("Order status updated", extra={"order_id": order_id})
            return self._to_out(cart)

    def dashboard_stats(self, actor_role) -> DashboardStatsOut:
        self.ensure_admin(actor_role)
        with self.ro_uow() as uow:
            return DashboardStatsOut(
                users=uow.users.count(),
                products=uow.products.count(),
                orders=uow.carts.count_closed(),
            )

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _open_cart(self, uow, user_id: int) -> Cart:
        cart = uow.carts.get_open_by_user(user_id)
        if cart is not None:
            return cart
        cart, created = uow.carts.create_open(user_id)
        if created:
            logger.info("Cart created", extra={"user_id": user_id, "cart_id": cart.id})
        return cart

    @staticmethod
    def _ensure_quantity(quantity) -> None:
        if not isinstance(quantity, int) or isinstance(quantity, bool) or quantity < 1:
            raise ValidationError(
                "Quantity must be a positive integer.", code="invalid_quantity", field="quantity"
            )

    @staticmethod
    def _total(items) -> Decimal:
        return sum((item.subtotal for item in items), Decimal("0"))

    @staticmethod
    def _item_out(item: CartItem) -> CartItemOut:
        price = Decimal(item.product.price)
        return CartItemOut(
            id=item.id,
            product_id=item.product_id,
            name=item.product.name,
            unit_price=price,
            quantity=item.quantity,
            subtotal=price * item.quantity,
            image_url=item.product.image_url,
        )

    def _to_out(self, cart: Cart) -> CartOut:
        items = tuple(self._item_out(item) for item in cart.items)
        return CartOut(
            id=cart.id,
            user_id=cart.user_id,
            status=CartStatus(cart.status).value,
            order_status=OrderStatus(cart.order_status).value if cart.order_status else None,
            items=items,
            total=sum((i.subtotal for i in items), Decimal("0")),
            checked_out_at=cart.checked_out_at,
        )

    def _to_list(self, result) -> OrderListOut:
        return OrderListOut(
            items=tuple(self._to_out(cart) for cart in result.items),
            meta=PageMeta.build(page=result.page, limit=result.limit, total=result.total),
        )

    @staticmethod
    def _already_closed(cart: Cart, total: Decimal) -> CheckoutOut:
        return CheckoutOut(
            cart_id=cart.id,
            status=CartStatus.CLOSED.value,
            already_closed=True,
            total=total,
            order_status=OrderStatus(cart.order_status).value if cart.order_status else None,
        )
