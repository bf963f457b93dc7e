"""
SweepWorker: reclaim accounts whose email was never confirmed.

A pending user is removed once its confirmation token is older than the
confirmation TTL. Each record is handled in its own transaction, so one bad
row never blocks the rest of the batch. This is the only code path that
hard-deletes users.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime

from flask import Flask
from sqlalchemy.exc import SQLAlchemyError

from storefront.models.ephemeral_token import TokenPurpose, TokenStatus
from storefront.services._shared.base import BaseService, Clock
from storefront.services._shared.errors import ServiceError
from storefront.services._shared.settings import AccountSettings
from storefront.services.sweep.dto import SweepReport

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 60.0
_PURPOSE = TokenPurpose.CONFIRM_REGISTRATION


class SweepWorker(BaseService):
    def __init__(
        self,
        app: Flask | None = None,
        *,
        settings: AccountSettings | None = None,
        interval: float = DEFAULT_INTERVAL_SECONDS,
        batch_size: int | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(clock=clock)
        self.app = app
        self.settings = settings or AccountSettings()
        self.interval = float(interval)
        self.batch_size = batch_size
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    # ------------------------------------------------------------------ #
    # One cycle
    # ------------------------------------------------------------------ #

    def run_once(self, now: datetime | None = None) -> SweepReport:
        """
        Purge pending users whose confirmation token went stale.

        Must run inside an application context.

        :param now: Reference instant; defaults to the injected clock.
        :returns: Counters for the cycle.
        """
        now = now or self.now_utc()
        cutoff = now - self.settings.confirm_ttl

        with self.ro_uow() as uow:
            stale = [
                (t.id, t.user_id)
                for t in uow.tokens.list_stale(_PURPOSE, older_than=cutoff, limit=self.batch_size)
            ]

        purged = failed = 0
        for token_id, user_id in stale:
            try:
                if self._purge(token_id, user_id, now=now):
                    purged += 1
            except (ServiceError, SQLAlchemyError):
                failed += 1
                logger.exception(
                    "Sweep failed for record", extra={"user_id": user_id, "purpose": _PURPOSE.value}
                )

        report = SweepReport(scanned=len(stale), purged=purged, failed=failed)
        logger.info(
            "Sweep cycle finished",
            extra={"scanned": report.scanned, "purged": report.purged, "failed": report.failed},
        )
        return report

    def _purge(self, token_id: int, user_id: int, *, now: datetime) -> bool:
        with self.rw_uow() as uow:
            if uow.users.hard_delete_pending(user_id):
                logger.info("Pending account reclaimed", extra={"user_id": user_id})
                return True
            # Owner already active: retire the token so it stops matching.
            uow.tokens.transition(token_id, to_status=TokenStatus.EXPIRED, resolved_at=now)
            return False

    # ------------------------------------------------------------------ #
    # Background loop
    # ------------------------------------------------------------------ #

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        """Run :meth:`run_once` every ``interval`` seconds on a daemon thread."""
        if self.app is None:
            raise RuntimeError("SweepWorker.start() needs a Flask app.")
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="sweep-worker", daemon=True)
        self._thread.start()
        logger.info("Sweep worker started", extra={"interval_seconds": self.interval})

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("Sweep worker still alive after stop timeout")
            self._thread = None
        logger.info("Sweep worker stopped")

    def _loop(self) -> None:
        assert self.app is not None
        while not self._stop.is_set():
            try:
                with self.app.app_context():
                    self.run_once()
            except Exception:
                logger.exception("Sweep cycle error")
            self._stop.wait(self.interval)
