from storefront.models.cart import Cart, CartItem, CartStatus, OrderStatus
from storefront.models.ephemeral_token import EphemeralToken, TokenPurpose, TokenStatus
from storefront.models.product import Product
from storefront.models.user import User, UserRole, UserStatus

__all__ = [
    "Cart",
    "CartItem",
    "CartStatus",
    "EphemeralToken",
    "OrderStatus",
    "Product",
    "TokenPurpose",
    "TokenStatus",
    "User",
    "UserRole",
    "UserStatus",
]
