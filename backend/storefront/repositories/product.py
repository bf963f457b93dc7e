"""Read access to the product catalog."""

from __future__ import annotations

from storefront.models.product import Product
from storefront.repositories.base import BaseRepository


class ProductRepository(BaseRepository[Product]):
    """Products are seeded out of band; the cart ledger only reads them."""

    model = Product

    def _sortable_fields(self):
        return {"id": Product.id, "name": Product.name, "price": Product.price}
