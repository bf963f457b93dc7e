"""Convenience exports for application schemas."""

from __future__ import annotations

from .admin import DashboardStatsSchema, OrderStatusSchema
from .auth import (
    AckSchema,
    ChangePasswordSchema,
    ForgotPasswordSchema,
    LoginSchema,
    RegisterSchema,
    RegistrationSchema,
    ResetPasswordSchema,
    ResetTokenCheckSchema,
    SessionSchema,
    TokenSchema,
    UserSchema,
)
from .cart import (
    AddItemSchema,
    CartSchema,
    CheckoutResultSchema,
    CheckoutSchema,
    OrderListSchema,
    UpdateItemSchema,
)
from .common import MetaSchema, PaginationQuerySchema, SortQuerySchema

__all__ = [
    "AckSchema",
    "AddItemSchema",
    "CartSchema",
    "ChangePasswordSchema",
    "CheckoutResultSchema",
    "CheckoutSchema",
    "DashboardStatsSchema",
    "ForgotPasswordSchema",
    "LoginSchema",
    "MetaSchema",
    "OrderListSchema",
    "OrderStatusSchema",
    "PaginationQuerySchema",
    "RegisterSchema",
    "RegistrationSchema",
    "ResetPasswordSchema",
    "ResetTokenCheckSchema",
    "SessionSchema",
    "SortQuerySchema",
    "TokenSchema",
    "UpdateItemSchema",
    "UserSchema",
]
