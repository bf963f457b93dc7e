"""
SQLAlchemy implementation of UnitOfWork for Flask.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event, text
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, SessionTransaction, scoped_session

from storefront.core.extensions import db
from storefront.repositories import (
    CartRepository,
    EphemeralTokenRepository,
    ProductRepository,
    UserRepository,
)
from storefront.services._shared.errors import StorageUnavailableError
from storefront.uow.base import UnitOfWork

logger = logging.getLogger(__name__)

# Failures that mean "the database cannot be reached right now".
_UNAVAILABLE = (OperationalError, PoolTimeoutError)


class SQLAlchemyRepositoryContainer:
    """Provide repository instances that share a SQLAlchemy session."""

    def __init__(self, *, session: Session) -> None:
        self.session = session
        self.users = UserRepository(session=self.session)
        self.tokens = EphemeralTokenRepository(session=self.session)
        self.carts = CartRepository(session=self.session)
        self.products = ProductRepository(session=self.session)


class SQLAlchemyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    SQLAlchemy-backed UoW using the Flask-scoped session.

    Commits when the block exits cleanly and rolls back otherwise. Connection
    and pool failures leave the block as :class:`StorageUnavailableError`.
    """

    def __init__(self) -> None:
        super().__init__(session=db.session)

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        # The session begins lazily on first use.
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            try:
                self.commit()
            except _UNAVAILABLE as commit_exc:
                self.rollback()
                raise StorageUnavailableError() from commit_exc
            except Exception:
                self.rollback()
                raise
            return

        self.rollback()
        if isinstance(exc, _UNAVAILABLE):
            raise StorageUnavailableError() from exc

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        with suppress(*_UNAVAILABLE):
            self.session.rollback()


class SQLAlchemyReadOnlyUnitOfWork(SQLAlchemyRepositoryContainer, UnitOfWork):
    """
    Read-only Unit of Work backed by the Flask-scoped SQLAlchemy session.

    This UoW:
    - Sets the isolation level and ``READ ONLY`` on PostgreSQL and MySQL when it
      owns the transaction.
    - Installs portable write-guards and always rolls back on exit.
    - Disallows ``commit()``.

    Parameters
    ----------
    isolation_level:
        Optional transaction isolation level hint such as ``"READ COMMITTED"``.
        ``None`` keeps the connection default.
    enforce_db_readonly:
        Apply ``SET TRANSACTION READ ONLY`` where the dialect supports it.

    Notes
    -----
    SQLite has no ``SET TRANSACTION``; only the guards apply there.
    """

    _WRITE_PREFIXES = (
        "insert",
        "update",
        "delete",
        "merge",
        "alter",
        "drop",
        "truncate",
        "create",
        "replace",
        "grant",
        "revoke",
    )
    _TRANSACTION_DIALECTS = ("postgresql", "mysql", "mariadb")
    _ISOLATION_LEVELS = ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE", "READ UNCOMMITTED")

    def __init__(
        self,
        *,
        isolation_level: str | None = "READ COMMITTED",
        enforce_db_readonly: bool = True,
    ) -> None:
        super().__init__(session=db.session)
        self.isolation_level = isolation_level
        self.enforce_db_readonly = enforce_db_readonly

        self._conn: Connection | None = None
        self._txn_ctx: SessionTransaction | None = None
        self._listeners_installed = False

    # ----------------------------- Context Manager -----------------------------

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """Open (or join) a transaction and arm the write guards.

        When the session already has a transaction in progress the scope
        attaches to it: guards still apply, but ``SET TRANSACTION`` is skipped
        and the outer transaction is left for its owner to finish.
        """
        self._txn_ctx = None
        self._conn = None

        try:
            txn_ctx = self.session.begin()
            txn_ctx.__enter__()
            self._txn_ctx = txn_ctx
        except InvalidRequestError:
            pass

        try:
            self._conn = self.session.connection()
        except _UNAVAILABLE as exc:
            self._end_transaction(None, None, None)
            raise StorageUnavailableError() from exc

        self._install_listeners()
        if self._txn_ctx is not None:
            self._apply_transaction_directives(self._conn.dialect.name)
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            self._end_transaction(exc_type, exc, tb)
        finally:
            self._remove_listeners()
            self._conn = None
        if isinstance(exc, _UNAVAILABLE):
            raise StorageUnavailableError() from exc

    def _end_transaction(self, exc_type, exc, tb) -> None:
        if self._txn_ctx is None:
            return
        with suppress(SQLAlchemyError):
            self.session.rollback()
        try:
            self._txn_ctx.__exit__(exc_type, exc, tb)
        finally:
            self._txn_ctx = None

    def _apply_transaction_directives(self, dialect: str) -> None:
        if dialect not in self._TRANSACTION_DIALECTS:
            return
        try:
            if self.isolation_level:
                iso = self.isolation_level.upper().strip()
                if iso not in self._ISOLATION_LEVELS:
                    logger.warning("Unknown isolation_level '%s'; attempting as-is.", iso)
                self.session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {iso}"))
            if self.enforce_db_readonly:
                self.session.execute(text("SET TRANSACTION READ ONLY"))
        except SQLAlchemyError as exc:
            logger.warning("SET TRANSACTION failed (%s); continuing with guards only.", exc)

    # ----------------------------- Public API ---------------------------------

    def commit(self) -> None:
        """
        Disallow commit in read-only Unit of Work.

        :raises RuntimeError: always.
        """
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()

    # ----------------------------- Guards & Listeners --------------------------

    def _raw_session(self) -> Session:
        if isinstance(self.session, scoped_session):
            return self.session()
        return self.session

    def _install_listeners(self) -> None:
        """Block ORM flushes and raw DML while the scope is open."""
        if self._listeners_installed:
            return

        def _before_flush(session, flush_context, instances):
            if session.new or session.dirty or session.deleted:
                raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")

        # Bind to this thread's Session, not the scoped registry (which targets the class).
        event.listen(self._raw_session(), "before_flush", _before_flush)

        def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
            first_token = statement.lstrip().split(None, 1)[0].lower() if statement else ""
            if first_token.startswith(self._WRITE_PREFIXES):
                raise RuntimeError(
                    f"Read-only UnitOfWork: SQL statement blocked: {first_token.upper()}"
                )

        target = self._conn if self._conn is not None else self.session.get_bind()
        event.listen(target, "before_cursor_execute", _before_cursor_execute)

        self._ro__before_flush = _before_flush
        self._ro__before_cursor_execute = _before_cursor_execute
        self._listeners_installed = True

    def _remove_listeners(self) -> None:
        if not self._listeners_installed:
            return

        with suppress(InvalidRequestError):
            event.remove(self._raw_session(), "before_flush", self._ro__before_flush)

        with suppress(InvalidRequestError):
            target = self._conn if self._conn is not None else self.session.get_bind()
            event.remove(target, "before_cursor_execute", self._ro__before_cursor_execute)

        self._listeners_installed = False
