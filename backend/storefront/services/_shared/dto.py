# comments in English; reST docstrings strict
from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class PaginationIn:
    """
    Input pagination contract.

    :param page: 1-based page number.
    :type page: int
    :param limit: Page size (> 0).
    :type limit: int
    :param sort: Sort tokens like ``["-checked_out_at", "id"]``.
    :type sort: Iterable[str] | None
    """

    page: int = 1
    limit: int = 20
    sort: Iterable[str] | None = None


@dataclass(frozen=True, slots=True)
class PageMeta:
    """
    Output pagination metadata.

    :param page: Current page (1-based).
    :type page: int
    :param limit: Page size.
    :type limit: int
    :param total: Total rows available.
    :type total: int
    :param has_prev: Whether a previous page exists.
    :type has_prev: bool
    :param has_next: Whether a next page exists.
    :type has_next: bool
    """

    page: int
    limit: int
    total: int
    has_prev: bool
    has_next: bool

    @classmethod
    def build(cls, *, page: int, limit: int, total: int) -> PageMeta:
        return cls(
            page=page,
            limit=limit,
            total=total,
            has_prev=page > 1,
            has_next=page * limit < total,
        )


@dataclass(frozen=True, slots=True)
class AckOut:
    """
    Generic acknowledgement returned by flows that reveal nothing else.

    :param message: Human-readable confirmation.
    :type message: str
    """

    message: str
