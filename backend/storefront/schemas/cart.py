"""Cart and order schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate

from .common import MetaSchema


class AddItemSchema(Schema):
    """Payload for adding a product to the open cart."""

    class Meta:
        unknown = EXCLUDE

    product_id = fields.Integer(required=True, strict=True, validate=validate.Range(min=1))
    quantity = fields.Integer(load_default=1, strict=True)


class UpdateItemSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    quantity = fields.Integer(required=True, strict=True)


class CheckoutSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    cart_id = fields.Integer(load_default=None, allow_none=True, strict=True)


class CartItemSchema(Schema):
    id = fields.Integer(required=True)
    product_id = fields.Integer(required=True)
    name = fields.String(required=True)
    unit_price = fields.Decimal(required=True, as_string=True)
    quantity = fields.Integer(required=True)
    subtotal = fields.Decimal(required=True, as_string=True)
    image_url = fields.String(allow_none=True)


class CartSchema(Schema):
    """Open cart or closed order."""

    id = fields.Integer(required=True)
    user_id = fields.Integer(required=True)
    status = fields.String(required=True)
    order_status = fields.String(allow_none=True)
    items = fields.List(fields.Nested(CartItemSchema), required=True)
    item_count = fields.Integer(required=True)
    total = fields.Decimal(required=True, as_string=True)
    checked_out_at = fields.DateTime(allow_none=True)


class CheckoutResultSchema(Schema):
    cart_id = fields.Integer(required=True)
    status = fields.String(required=True)
    already_closed = fields.Boolean(required=True)
    total = fields.Decimal(required=True, as_string=True)
    order_status = fields.String(allow_none=True)


class OrderListSchema(Schema):
    items = fields.List(fields.Nested(CartSchema), required=True)
    meta = fields.Nested(MetaSchema, required=True)
