"""Repository package exposing persistence-layer access for all domain models."""

from __future__ import annotations

from storefront.repositories.base import (
    BaseRepository,
    Page,
    Pagination,
    paginate_select,
    parse_sort_tokens,
)
from storefront.repositories.cart import CartRepository
from storefront.repositories.ephemeral_token import EphemeralTokenRepository
from storefront.repositories.product import ProductRepository
from storefront.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "Page",
    "Pagination",
    "paginate_select",
    "parse_sort_tokens",
    # Domain
    "CartRepository",
    "EphemeralTokenRepository",
    "ProductRepository",
    "UserRepository",
]
