# tests/unit/infra/test_redis_denylist.py
"""
Unit tests for RedisSessionDenylist using fakeredis.

They use fakeredis.FakeRedis so they run entirely in-memory.
"""

from __future__ import annotations

from datetime import timedelta

import fakeredis
import pytest

from storefront.infra.redis.redis_denylist_store import RedisSessionDenylist


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis, clock):
    return RedisSessionDenylist(fake_redis, clock=clock)


def test_unknown_jti_is_not_revoked(store):
    assert store.is_revoked("jti-0") is False


def test_revoke_sets_marker_with_remaining_ttl(store, fake_redis, clock):
    store.revoke(jti="jti-1", expires_at=clock.now + timedelta(minutes=10))

    assert store.is_revoked("jti-1") is True
    ttl = fake_redis.ttl("deny:session:jti-1")
    assert 0 < ttl <= 600


def test_revoke_is_idempotent(store, clock):
    expires_at = clock.now + timedelta(hours=1)
    store.revoke(jti="jti-2", expires_at=expires_at)
    store.revoke(jti="jti-2", expires_at=expires_at)
    assert store.is_revoked("jti-2") is True


def test_already_expired_token_leaves_no_marker(store, fake_redis, clock):
    store.revoke(jti="jti-3", expires_at=clock.now - timedelta(seconds=1))
    assert store.is_revoked("jti-3") is False
    assert fake_redis.keys("deny:session:*") == []


def test_custom_prefix(fake_redis, clock):
    store = RedisSessionDenylist(fake_redis, prefix="app:deny", clock=clock)
    store.revoke(jti="jti-4", expires_at=clock.now + timedelta(minutes=1))
    assert fake_redis.exists("app:deny:jti-4") == 1
