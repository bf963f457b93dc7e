"""Cart endpoints for the signed-in user."""

from __future__ import annotations

from flask import Blueprint, request

from storefront.api.deps import cart_ledger, current_identity, json_response, require_session, timing
from storefront.schemas import (
    AddItemSchema,
    CartSchema,
    CheckoutResultSchema,
    CheckoutSchema,
    UpdateItemSchema,
)

bp = Blueprint("cart", __name__)

cart_schema = CartSchema()
add_item_schema = AddItemSchema()
update_item_schema = UpdateItemSchema()
checkout_schema = CheckoutSchema()
checkout_result_schema = CheckoutResultSchema()


def _cart(result, status: int = 200):
    return json_response({"data": cart_schema.dump(result)}, status=status)


@bp.get("")
@require_session
@timing
def get_cart():
    """Return the caller's open cart, creating it on first access."""

    return _cart(cart_ledger().get_or_create_open_cart(current_identity().user_id))


@bp.delete("")
@require_session
@timing
def clear_cart():
    return _cart(cart_ledger().clear_cart(current_identity().user_id))


@bp.post("/items")
@require_session
@timing
def add_item():
    data = add_item_schema.load(request.get_json(silent=True) or {})
    result = cart_ledger().add_item(
        current_identity().user_id, data["product_id"], data["quantity"]
    )
    return _cart(result, status=201)


@bp.patch("/items/<int:item_id>")
@require_session
@timing
def update_item(item_id: int):
    data = update_item_schema.load(request.get_json(silent=True) or {})
    result = cart_ledger().update_item_quantity(
        current_identity().user_id, item_id, data["quantity"]
    )
    return _cart(result)


@bp.delete("/items/<int:item_id>")
@require_session
@timing
def remove_item(item_id: int):
    return _cart(cart_ledger().remove_item(current_identity().user_id, item_id))


@bp.post("/checkout")
@require_session
@timing
def checkout():
    """Close the open cart. Repeated calls report ``already_closed``."""

    data = checkout_schema.load(request.get_json(silent=True) or {})
    result = cart_ledger().checkout(current_identity().user_id, cart_id=data["cart_id"])
    return json_response({"data": checkout_result_schema.dump(result)})
