"""Cart and CartItem models: the open basket and, once closed, the order."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    UniqueConstraint,
    text,
)
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin, enum_values

if TYPE_CHECKING:
    from .product import Product


class CartStatus(str, Enum):
    """``open`` → ``closed`` is the only transition; ``closed`` is terminal."""

    OPEN = "open"
    CLOSED = "closed"


class OrderStatus(str, Enum):
    """Fulfilment label carried by closed carts."""

    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    SHIPPING = "shipping"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


# Partial-index predicate shared by the PostgreSQL and SQLite dialects.
_OPEN_PREDICATE = text("status = 'open'")


class Cart(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Basket owned by a user.

    At most one ``open`` cart exists per user; the partial unique index
    ``uq_carts_open_user`` enforces it at the storage layer.
    """

    __tablename__ = "carts"

    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[CartStatus] = mapped_column(
        SAEnum(
            CartStatus,
            name="cart_status",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=16,
        ),
        nullable=False,
        default=CartStatus.OPEN,
    )
    order_status: Mapped[OrderStatus | None] = mapped_column(
        SAEnum(
            OrderStatus,
            name="order_status",
            native_enum=False,
            values_callable=enum_values,
            validate_strings=True,
            length=16,
        ),
        nullable=True,
    )
    checked_out_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    items: Mapped[list[CartItem]] = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CartItem.id",
        lazy="selectin",
    )
    user = relationship("User", lazy="select")

    __table_args__ = (
        Index(
            "uq_carts_open_user",
            "user_id",
            unique=True,
            postgresql_where=_OPEN_PREDICATE,
            sqlite_where=_OPEN_PREDICATE,
        ),
        Index("ix_carts_status", "status"),
    )

    @property
    def is_open(self) -> bool:
        return self.status == CartStatus.OPEN

    @property
    def total(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0"))


class CartItem(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """One product line; ``subtotal`` is derived from the current product price."""

    __tablename__ = "cart_items"

    cart_id: Mapped[int] = mapped_column(ForeignKey("carts.id", ondelete="CASCADE"), nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("products.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    cart: Mapped[Cart] = relationship("Cart", back_populates="items")
    product: Mapped[Product] = relationship("Product", lazy="joined")

    __table_args__ = (
        UniqueConstraint("cart_id", "product_id", name="uq_cart_items_cart_product"),
        CheckConstraint("quantity > 0", name="quantity_positive"),
    )

    @property
    def subtotal(self) -> Decimal:
        return Decimal(self.product.price) * self.quantity
