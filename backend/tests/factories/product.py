"""Factory Boy definition for :class:`storefront.models.product.Product`."""

from __future__ import annotations

from decimal import Decimal

import factory

from storefront.models.product import Product
from tests.factories import BaseFactory


class ProductFactory(BaseFactory):
    class Meta:
        model = Product

    id = None
    name = factory.Sequence(lambda n: f"Product {n}")
    description = factory.Faker("sentence")
    price = Decimal("10.00")
    stock = 10
    image_url = None
