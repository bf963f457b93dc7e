"""Generic repository base and query utilities for SQLAlchemy 2.x.

Persistence-only concerns shared by all repositories:
- Pagination and whitelisted sorting (primary key as the final tiebreaker).
- Safe updates through per-repository updatable-field whitelists.
- No commit/rollback: services own transactions through a Unit of Work.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, cast

from sqlalchemy import Select, and_, func, select
from sqlalchemy.orm import InstrumentedAttribute, Session

from storefront.core.extensions import db

E = TypeVar("E")  # SQLAlchemy mapped entity type


# ------------------------------- Pagination ----------------------------------


@dataclass(slots=True)
class Pagination:
    """Pagination input parameters.

    :param page: 1-based page number.
    :type page: int
    :param limit: Page size.
    :type limit: int
    :param sort: Public sort tokens (e.g., ``["-created_at", "id"]``).
    :type sort: list[str]
    """

    page: int
    limit: int
    sort: list[str]


@dataclass(slots=True)
class Page(Generic[E]):
    """One page of entities plus the total row count."""

    items: Sequence[E]
    total: int
    page: int
    limit: int


# ----------------------------- Sorting utilities -----------------------------


def parse_sort_tokens(raw: Iterable[str]) -> list[tuple[str, bool]]:
    """Parse ``["-created_at", "id"]`` into ``[("created_at", True), ("id", False)]``."""
    parsed: list[tuple[str, bool]] = []
    for token in raw:
        is_desc = token.startswith("-")
        field = (token[1:] if is_desc else token).strip()
        if field:
            parsed.append((field, is_desc))
    return parsed


def _apply_sorting(
    stmt: Select[Any],
    sortable_fields: Mapping[str, InstrumentedAttribute[Any]],
    tokens: Iterable[str],
    *,
    pk_attr: InstrumentedAttribute[Any] | None,
) -> Select[Any]:
    """Apply whitelisted ``ORDER BY`` clauses; unknown tokens are ignored.

    :param stmt: Base selectable.
    :param sortable_fields: Public field → ORM attribute mapping.
    :param tokens: Public sort tokens.
    :param pk_attr: Primary-key attribute appended as a stable tiebreaker.
    :returns: Ordered select.
    """
    orders: list[Any] = []
    for field, is_desc in parse_sort_tokens(tokens):
        col = sortable_fields.get(field)
        if isinstance(col, InstrumentedAttribute):
            orders.append(col.desc() if is_desc else col.asc())

    if orders:
        stmt = stmt.order_by(*orders)
    if pk_attr is not None:
        stmt = stmt.order_by(pk_attr.asc())
    return stmt


def paginate_select(
    session: Session,
    stmt: Select[Any],
    *,
    page: int,
    limit: int,
    with_total: bool = True,
) -> tuple[list[Any], int]:
    """Execute ``stmt`` for one page and optionally count all matching rows.

    :returns: ``(items, total)``; ``total`` is 0 when ``with_total`` is off.
    """
    page = max(int(page), 1)
    limit = max(int(limit), 1)

    total = 0
    if with_total:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        total = int(session.execute(count_stmt).scalar_one())

    sliced = stmt.limit(limit).offset((page - 1) * limit)
    items = list(session.execute(sliced).scalars().unique().all())
    return items, total


# ------------------------------ Base repository ------------------------------


class BaseRepository(Generic[E]):
    """Persistence-only repository for a single aggregate.

    Subclasses MUST define ``model`` and MAY override ``_sortable_fields``,
    ``_default_eagerload`` and ``_updatable_fields``.

    This class never opens, commits or rolls back transactions.
    """

    #: SQLAlchemy mapped model (must be set by subclasses)
    model: type[E]

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session shared across the Unit of Work scope; falls
            back to the Flask-scoped session when omitted.
        """
        self._session: Session | None = session

    @property
    def session(self) -> Session:
        """Active session: the injected one, else the Flask-scoped session."""
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    # ------------------------------ Extensibility ----------------------------

    def _default_eagerload(self, stmt: Select[Any]) -> Select[Any]:
        return stmt

    def _pk_attr(self) -> InstrumentedAttribute[Any] | None:
        return getattr(self.model, "id", None)

    def _sortable_fields(self) -> Mapping[str, InstrumentedAttribute[Any]]:
        return {}

    def _updatable_fields(self) -> set[str]:
        """Public keys assignable through :meth:`update`; empty means none."""
        return set()

    def _sanitize_update_fields(
        self,
        fields: Mapping[str, Any],
        *,
        strict: bool = True,
    ) -> dict[str, Any]:
        """Keep only whitelisted keys.

        :raises ValueError: If ``strict`` and unknown keys are present, or no
            whitelist is configured.
        """
        allowed = self._updatable_fields()
        if not allowed:
            if fields and strict:
                raise ValueError("No updatable fields configured for this repository.")
            return {}

        unknown = [k for k in fields if k not in allowed]
        if unknown and strict:
            raise ValueError(f"Unknown or non-updatable fields: {unknown}")
        return {k: v for k, v in fields.items() if k in allowed}

    # --------------------------------- CRUD ----------------------------------

    def add(self, instance: E) -> E:
        """Stage ``instance`` and flush so its primary key is populated."""
        self.session.add(instance)
        self.flush()
        return instance

    def get(self, entity_id: Any) -> E | None:
        """Fetch by primary key or return ``None``."""
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get requires a detectable PK attribute.")
        stmt = self._default_eagerload(select(self.model).where(pk_attr == entity_id))
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def get_for_update(self, entity_id: Any) -> E | None:
        """Fetch by primary key with ``FOR UPDATE`` where the dialect supports it."""
        pk_attr = self._pk_attr()
        if pk_attr is None:
            raise RuntimeError("BaseRepository.get_for_update requires a detectable PK.")
        stmt = self._default_eagerload(
            select(self.model).where(pk_attr == entity_id)
        ).with_for_update()
        return cast(E | None, self.session.execute(stmt).scalars().first())

    def exists(self, **filters: Any) -> bool:
        """Return ``True`` when a row matches all equality ``filters``."""
        clauses = [getattr(self.model, key) == value for key, value in filters.items()]
        stmt = select(func.count()).select_from(self.model)
        if clauses:
            stmt = stmt.where(and_(*clauses))
        return bool(self.session.execute(stmt).scalar_one())

    def count(self) -> int:
        stmt = select(func.count()).select_from(self.model)
        return int(self.session.execute(stmt).scalar_one())

    def delete(self, instance: E) -> None:
        self.session.delete(instance)
        self.flush()

    def flush(self) -> None:
        self.session.flush()

    # ----------------------------- Safe updates -------------------------------

    def assign_updates(
        self,
        instance: E,
        fields: Mapping[str, Any],
        *,
        strict: bool = True,
        flush: bool = True,
    ) -> E:
        """Assign whitelisted keys with ``setattr`` so ``@validates`` hooks run.

        :raises ValueError: On unknown keys when ``strict``.
        """
        for key, value in self._sanitize_update_fields(fields, strict=strict).items():
            setattr(instance, key, value)
        if flush:
            self.flush()
        return instance

    def update(self, instance: E, **fields: Any) -> E:
        return self.assign_updates(instance, fields, strict=True, flush=True)

    # ------------------------------- Listing ---------------------------------

    def list(
        self,
        *,
        sort: Iterable[str] | None = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[E]:
        """List entities with whitelisted sorting and optional slicing."""
        stmt: Select[Any] = self._default_eagerload(select(self.model))
        stmt = _apply_sorting(stmt, self._sortable_fields(), sort or [], pk_attr=self._pk_attr())
        if limit is not None:
            stmt = stmt.limit(int(limit))
        if offset is not None:
            stmt = stmt.offset(int(offset))
        return cast(list[E], list(self.session.execute(stmt).scalars().unique().all()))

    def paginate_statement(
        self, stmt: Select[Any], pagination: Pagination, *, with_total: bool = True
    ) -> Page[E]:
        """Sort and paginate a caller-built select over ``model``."""
        stmt = self._default_eagerload(stmt)
        stmt = _apply_sorting(
            stmt, self._sortable_fields(), pagination.sort, pk_attr=self._pk_attr()
        )
        raw_items, total = paginate_select(
            self.session,
            stmt,
            page=pagination.page,
            limit=pagination.limit,
            with_total=with_total,
        )
        return Page(
            items=cast(list[E], raw_items),
            total=total,
            page=pagination.page,
            limit=pagination.limit,
        )

    def paginate(self, pagination: Pagination, *, with_total: bool = True) -> Page[E]:
        return self.paginate_statement(select(self.model), pagination, with_total=with_total)
