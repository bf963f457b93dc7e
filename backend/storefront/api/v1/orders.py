"""Order history for the signed-in user."""

from __future__ import annotations

from flask import Blueprint

from storefront.api.deps import (
    cart_ledger,
    current_identity,
    json_response,
    parse_pagination,
    require_session,
    timing,
)
from storefront.schemas import OrderListSchema

bp = Blueprint("orders", __name__)

order_list_schema = OrderListSchema()


@bp.get("")
@require_session
@timing
def list_orders():
    pagination = parse_pagination()
    result = cart_ledger().list_orders(current_identity().user_id, pagination.to_input())
    return json_response(order_list_schema.dump(result))
