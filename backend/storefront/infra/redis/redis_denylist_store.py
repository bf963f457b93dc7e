from datetime import UTC, datetime
from typing import cast

import redis  # type: ignore[import-untyped]

from storefront.services._shared.ports.denylist_store import SessionDenylist


class RedisSessionDenylist(SessionDenylist):
    """
    Denylist for **session tokens** by jti, shared across workers.

    Each revoked jti is a marker key whose Redis TTL matches the token's
    remaining lifetime, so the store never grows past live sessions.
    """

    def __init__(self, r: redis.Redis, *, prefix: str = "deny:session", clock=None):
        self.r = r
        self.prefix = prefix
        self._clock = clock or (lambda: datetime.now(UTC))

    def _k(self, jti: str) -> str:
        return f"{self.prefix}:{jti}"

    def is_revoked(self, jti: str) -> bool:
        return cast(int, self.r.exists(self._k(jti))) == 1

    def revoke(self, *, jti: str, expires_at: datetime) -> None:
        remaining = int(expires_at.timestamp() - self._clock().timestamp())
        if remaining <= 0:
            # Already expired; signature checks reject it without a marker.
            return
        self.r.set(self._k(jti), "1", ex=remaining)
