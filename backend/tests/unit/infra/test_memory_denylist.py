# tests/unit/infra/test_memory_denylist.py
from __future__ import annotations

from datetime import timedelta

from storefront.services._shared.ports.denylist_store import InMemorySessionDenylist


def test_revoked_until_expiry(denylist, clock):
    denylist.revoke(jti="a", expires_at=clock.now + timedelta(minutes=5))

    assert denylist.is_revoked("a") is True
    clock.advance(minutes=5)
    assert denylist.is_revoked("a") is False


def test_revoke_prunes_expired_entries_never_checked_again(clock):
    store = InMemorySessionDenylist(clock=clock)
    for n in range(3):
        store.revoke(jti=f"old-{n}", expires_at=clock.now + timedelta(minutes=1))
    assert len(store) == 3

    clock.advance(minutes=2)
    store.revoke(jti="fresh", expires_at=clock.now + timedelta(hours=1))

    assert len(store) == 1
    assert store.is_revoked("fresh") is True
