from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Protocol


class SessionDenylist(Protocol):
    """
    Revocation list for **session** tokens, keyed by ``jti``.

    Entries only need to live until the token's own ``exp``; afterwards the
    signature check rejects the token anyway. Methods are idempotent.
    """

    def is_revoked(self, jti: str) -> bool: ...
    def revoke(self, *, jti: str, expires_at: datetime) -> None: ...


class InMemorySessionDenylist(SessionDenylist):
    """Process-local denylist used in tests and when Redis is not configured."""

    def __init__(self, *, clock=None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._revoked: dict[str, datetime] = {}
        self._lock = threading.Lock()

    def is_revoked(self, jti: str) -> bool:
        with self._lock:
            expires_at = self._revoked.get(jti)
            if expires_at is None:
                return False
            if expires_at <= self._clock():
                del self._revoked[jti]
                return False
            return True

    def revoke(self, *, jti: str, expires_at: datetime) -> None:
        with self._lock:
            now = self._clock()
            for stale in [key for key, exp in self._revoked.items() if exp <= now]:
                del self._revoked[stale]
            self._revoked[jti] = expires_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._revoked)
