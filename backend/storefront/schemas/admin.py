"""Admin surface schemas."""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class OrderStatusSchema(Schema):
    """Payload for relabelling a closed order."""

    class Meta:
        unknown = EXCLUDE

    status = fields.String(required=True)


class DashboardStatsSchema(Schema):
    users = fields.Integer(required=True)
    products = fields.Integer(required=True)
    orders = fields.Integer(required=True)
