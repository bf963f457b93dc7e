# storefront/services/cart/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from storefront.services._shared.dto import PageMeta

# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class CartItemOut:
    """
    One cart line priced at read time.

    :param id: Line identifier.
    :type id: int
    :param product_id: Product identifier.
    :type product_id: int
    :param name: Product name.
    :type name: str
    :param unit_price: Current product price.
    :type unit_price: Decimal
    :param quantity: Units in the cart.
    :type quantity: int
    :param subtotal: ``unit_price × quantity``.
    :type subtotal: Decimal
    :param image_url: Product image, if any.
    :type image_url: str | None
    """

    id: int
    product_id: int
    name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    image_url: str | None = None


@dataclass(frozen=True, slots=True)
class CartOut:
    """
    Cart (or, once closed, order) snapshot.

    :param id: Cart identifier.
    :type id: int
    :param user_id: Owner.
    :type user_id: int
    :param status: ``open`` or ``closed``.
    :type status: str
    :param order_status: Fulfilment label; ``None`` while open.
    :type order_status: str | None
    :param items: Lines in insertion order.
    :type items: tuple[CartItemOut, ...]
    :param total: Sum of subtotals.
    :type total: Decimal
    :param checked_out_at: Closing time; ``None`` while open.
    :type checked_out_at: datetime | None
    """

    id: int
    user_id: int
    status: str
    order_status: str | None
    items: tuple[CartItemOut, ...]
    total: Decimal
    checked_out_at: datetime | None = None

    @property
    def item_count(self) -> int:
        return sum(item.quantity for item in self.items)


@dataclass(frozen=True, slots=True)
class CheckoutOut:
    """
    Result of a checkout attempt.

    :param cart_id: Cart that was (or already had been) closed.
    :type cart_id: int
    :param status: Always ``closed``.
    :type status: str
    :param already_closed: ``True`` when this call did not perform the transition.
    :type already_closed: bool
    :param total: Order total.
    :type total: Decimal
    :param order_status: Fulfilment label.
    :type order_status: str | None
    """

    cart_id: int
    status: str
    already_closed: bool
    total: Decimal
    order_status: str | None = None


@dataclass(frozen=True, slots=True)
class OrderListOut:
    items: tuple[CartOut, ...]
    meta: PageMeta


@dataclass(frozen=True, slots=True)
class DashboardStatsOut:
    """
    Admin dashboard counters.

    :param users: Registered users.
    :type users: int
    :param products: Catalog size.
    :type products: int
    :param orders: Closed carts.
    :type orders: int
    """

    users: int
    products: int
    orders: int
