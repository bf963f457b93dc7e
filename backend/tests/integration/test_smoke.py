"""Smoke tests for the application wiring."""

from __future__ import annotations

from tests.helpers.assertions import assert_problem
from tests.helpers.http import build_url


def test_health(client) -> None:
    resp = client.get(build_url("/health"))
    assert resp.status_code == 200
    assert resp.get_json()["db"] == "ok"


def test_request_id_is_echoed(client) -> None:
    resp = client.get(build_url("/health"), headers={"X-Request-ID": "req-123"})
    assert resp.headers["X-Request-ID"] == "req-123"


def test_unknown_route_is_problem_json(client) -> None:
    body = assert_problem(client.get(build_url("/nope")), 404, "not_found")
    assert body["instance"] == "/api/v1/nope"
