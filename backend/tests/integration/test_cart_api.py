"""Integration tests for cart and order endpoints."""

from __future__ import annotations

from decimal import Decimal

import pytest

from tests.factories.product import ProductFactory
from tests.helpers.assertions import assert_pagination, assert_problem
from tests.helpers.http import build_url


@pytest.fixture()
def product(session):
    item = ProductFactory(price=Decimal("10.00"), stock=5)
    session.commit()
    return item


def test_cart_requires_session(client) -> None:
    assert_problem(client.get(build_url("/cart")), 401, "missing_session")


def test_get_cart_creates_open_cart(client, auth_header, user) -> None:
    resp = client.get(build_url("/cart"), headers=auth_header)
    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["status"] == "open"
    assert data["user_id"] == user.id
    assert data["items"] == []
    assert client.get(build_url("/cart"), headers=auth_header).get_json()["data"]["id"] == data["id"]


def test_item_lifecycle(client, auth_header, product) -> None:
    resp = client.post(
        build_url("/cart/items"), json={"product_id": product.id, "quantity": 2}, headers=auth_header
    )
    assert resp.status_code == 201
    cart = resp.get_json()["data"]
    [line] = cart["items"]
    assert Decimal(cart["total"]) == Decimal("20")
    assert cart["item_count"] == 2

    resp = client.patch(
        build_url(f"/cart/items/{line['id']}"), json={"quantity": 3}, headers=auth_header
    )
    assert resp.get_json()["data"]["items"][0]["quantity"] == 3

    resp = client.delete(build_url(f"/cart/items/{line['id']}"), headers=auth_header)
    assert resp.get_json()["data"]["items"] == []


def test_out_of_stock(client, auth_header, product) -> None:
    resp = client.post(
        build_url("/cart/items"), json={"product_id": product.id, "quantity": 6}, headers=auth_header
    )
    assert_problem(resp, 409, "out_of_stock")


def test_invalid_payload(client, auth_header) -> None:
    resp = client.post(build_url("/cart/items"), json={"product_id": "abc"}, headers=auth_header)
    body = assert_problem(resp, 422, "validation_error")
    assert "product_id" in body["details"]["errors"]


def test_unknown_product(client, auth_header) -> None:
    resp = client.post(build_url("/cart/items"), json={"product_id": 99999}, headers=auth_header)
    assert_problem(resp, 404, "product_not_found")


def test_checkout_is_idempotent(client, auth_header, product) -> None:
    client.post(build_url("/cart/items"), json={"product_id": product.id}, headers=auth_header)

    first = client.post(build_url("/cart/checkout"), json={}, headers=auth_header)
    second = client.post(build_url("/cart/checkout"), headers=auth_header)

    assert first.status_code == second.status_code == 200
    first_data, second_data = first.get_json()["data"], second.get_json()["data"]
    assert first_data["already_closed"] is False
    assert second_data["already_closed"] is True
    assert first_data["cart_id"] == second_data["cart_id"]
    assert first_data["order_status"] == "processing"

    resp = client.get(build_url("/orders"), headers=auth_header)
    body = resp.get_json()
    assert_pagination(body)
    assert [o["id"] for o in body["items"]] == [first_data["cart_id"]]


def test_checkout_without_any_cart(client, auth_header) -> None:
    assert_problem(
        client.post(build_url("/cart/checkout"), headers=auth_header), 409, "no_active_cart"
    )


def test_clear_cart(client, auth_header, product) -> None:
    client.post(build_url("/cart/items"), json={"product_id": product.id}, headers=auth_header)
    resp = client.delete(build_url("/cart"), headers=auth_header)
    assert resp.get_json()["data"]["items"] == []
