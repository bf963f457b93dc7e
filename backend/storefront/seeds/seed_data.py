"""Idempotent database seed helpers for local development environments."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, TypeVar, cast

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import select
from sqlalchemy.orm import Session

from storefront.core.security import DEFAULT_BCRYPT_ROUNDS
from storefront.models.cart import Cart, CartStatus
from storefront.models.product import Product
from storefront.models.user import User, UserRole, UserStatus

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

USER_FIXTURES: list[dict[str, str]] = [
    {
        "email": "admin@gmail.com",
        "name": "Store Admin",
        "password": "adminPass123",
        "role": UserRole.ADMIN.value,
    },
    {
        "email": "jamie.lee@gmail.com",
        "name": "Jamie Lee",
        "password": "shopper123",
        "role": UserRole.USER.value,
    },
]

PRODUCT_FIXTURES: list[dict[str, Any]] = [
    {
        "name": "Ceramic Pour-Over Set",
        "description": "Hand-glazed dripper with matching carafe.",
        "price": Decimal("34.90"),
        "stock": 12,
        "image_url": None,
    },
    {
        "name": "Linen Apron",
        "description": "Stonewashed linen apron with two front pockets.",
        "price": Decimal("28.00"),
        "stock": 20,
        "image_url": None,
    },
    {
        "name": "Cast Iron Skillet 26cm",
        "description": "Pre-seasoned skillet for stovetop and oven.",
        "price": Decimal("49.50"),
        "stock": 5,
        "image_url": None,
    },
    {
        "name": "Walnut Cutting Board",
        "description": "End-grain board finished with food-safe oil.",
        "price": Decimal("62.00"),
        "stock": 3,
        "image_url": None,
    },
    {
        "name": "Spice Tin Trio",
        "description": "Airtight tins for whole and ground spices.",
        "price": Decimal("15.75"),
        "stock": 0,
        "image_url": None,
    },
]


def _session(database: SQLAlchemy) -> Session:
    """Return the current SQLAlchemy session."""
    return cast(Session, database.session)


def _touch(summary: dict[str, dict[str, int]], table: str, created: bool) -> None:
    """Update summary counters for the given table."""
    entry = summary.setdefault(table, {"created": 0, "existing": 0})
    if created:
        entry["created"] += 1
    else:
        entry["existing"] += 1


def _get_or_create(
    session: Session,
    model: type[T],
    *,
    defaults: dict[str, Any] | None = None,
    **filters: Any,
) -> tuple[T, bool]:
    """Fetch ``model`` by ``filters`` or create it using ``defaults``."""
    instance = session.execute(select(model).filter_by(**filters)).scalars().first()
    if instance is not None:
        return instance, False
    params = dict(defaults or {})
    params.update(filters)
    instance = cast(T, model(**params))
    session.add(instance)
    return instance, True


def seed_users(
    database: SQLAlchemy, *, verbose: bool = False, rounds: int = DEFAULT_BCRYPT_ROUNDS
) -> dict[str, dict[str, int]]:
    """Create active demo accounts, each with an open cart."""
    if verbose:
        LOGGER.info("Seeding users...")
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}

    with session.begin():
        for fixture in USER_FIXTURES:
            email = fixture["email"].strip().lower()
            user = session.execute(select(User).filter_by(email=email)).scalars().first()
            created = user is None
            if user is None:
                user = User(email=email, name=fixture["name"])
                user.set_password(fixture["password"], rounds=rounds)
                session.add(user)
            user.role = UserRole(fixture["role"])
            user.status = UserStatus.ACTIVE
            session.flush()
            _touch(summary, "users", created)

            _, cart_created = _get_or_create(
                session, Cart, user_id=user.id, status=CartStatus.OPEN
            )
            session.flush()
            _touch(summary, "carts", cart_created)

    return summary


def seed_products(database: SQLAlchemy, *, verbose: bool = False) -> dict[str, dict[str, int]]:
    """Create the demo catalog; existing rows get their stock and price reset."""
    if verbose:
        LOGGER.info("Seeding products...")
    session = _session(database)
    summary: dict[str, dict[str, int]] = {}

    with session.begin():
        for fixture in PRODUCT_FIXTURES:
            product, created = _get_or_create(
                session,
                Product,
                defaults={"description": fixture["description"]},
                name=fixture["name"],
            )
            product.price = fixture["price"]
            product.stock = fixture["stock"]
            product.image_url = fixture["image_url"]
            session.flush()
            _touch(summary, "products", created)

    return summary


def run_all(
    database: SQLAlchemy, *, verbose: bool = False, rounds: int = DEFAULT_BCRYPT_ROUNDS
) -> dict[str, dict[str, int]]:
    """Run all seeders in the correct foreign-key order."""
    if verbose:
        LOGGER.info("Running full seed pipeline...")
    combined: dict[str, dict[str, int]] = {}
    results = (
        seed_users(database, verbose=verbose, rounds=rounds),
        seed_products(database, verbose=verbose),
    )
    for result in results:
        for table, counters in result.items():
            entry = combined.setdefault(table, {"created": 0, "existing": 0})
            entry["created"] += counters.get("created", 0)
            entry["existing"] += counters.get("existing", 0)
    return combined


__all__ = ["seed_products", "seed_users", "run_all"]
