"""Administrator endpoints: orders and dashboard counters."""

from __future__ import annotations

from flask import Blueprint, request

from storefront.api.deps import (
    cart_ledger,
    current_identity,
    json_response,
    parse_pagination,
    require_admin,
    timing,
)
from storefront.schemas import CartSchema, DashboardStatsSchema, OrderListSchema, OrderStatusSchema

bp = Blueprint("admin", __name__)

order_list_schema = OrderListSchema()
order_schema = CartSchema()
order_status_schema = OrderStatusSchema()
stats_schema = DashboardStatsSchema()


@bp.get("/orders")
@require_admin
@timing
def list_orders():
    pagination = parse_pagination()
    result = cart_ledger().list_all_orders(current_identity().role, pagination.to_input())
    return json_response(order_list_schema.dump(result))


@bp.patch("/orders/<int:order_id>/status")
@require_admin
@timing
def update_order_status(order_id: int):
    data = order_status_schema.load(request.get_json(silent=True) or {})
    order = cart_ledger().update_order_status(current_identity().role, order_id, data["status"])
    return json_response({"data": order_schema.dump(order)})


@bp.get("/stats")
@require_admin
@timing
def stats():
    result = cart_ledger().dashboard_stats(current_identity().role)
    return json_response({"data": stats_schema.dump(result)})
