from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SweepReport:
    """
    Outcome of one sweep cycle.

    :param scanned: Stale confirmation tokens found.
    :type scanned: int
    :param purged: Pending accounts removed.
    :type purged: int
    :param failed: Records skipped because of an error.
    :type failed: int
    """

    scanned: int = 0
    purged: int = 0
    failed: int = 0
