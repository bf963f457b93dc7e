"""Service layer.

Import services from their subpackages, e.g.
:mod:`storefront.services.cart.service`. This package module stays free of
imports because the unit of work depends on :mod:`._shared.errors`.
"""
