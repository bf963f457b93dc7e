from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import UTC, datetime

from storefront.core import errors as api_errors
from storefront.repositories.base import Pagination
from storefront.services._shared.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ExpiredError,
    NotFoundError,
    ServiceError,
    TransientError,
    ValidationError,
)
from storefront.services._shared.policies.common import is_admin
from storefront.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Centralize error translation.
    * Own the injectable clock every time-dependent rule reads.

    Notes
    -----
    - Services never touch the global session directly; they go through a
      Unit of Work.
    - Services stay framework-agnostic: no ``request``/``g`` access here.
    """

    DEFAULT_READ_ISOLATION = "READ COMMITTED"

    def __init__(self, *, clock: Clock | None = None) -> None:
        """
        :param clock: Callable returning the current aware UTC datetime.
        :type clock: Callable[[], datetime] | None
        """
        self.clock: Clock = clock or system_clock

    def now_utc(self) -> datetime:
        return self.clock()

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(
        self, *, isolation: str | None = None, enforce_db_readonly: bool = True
    ) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :param isolation: Transaction isolation level (e.g. "READ COMMITTED").
        :type isolation: str | None
        :param enforce_db_readonly: Apply ``SET TRANSACTION READ ONLY`` when supported.
        :type enforce_db_readonly: bool
        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork(
            isolation_level=isolation or self.DEFAULT_READ_ISOLATION,
            enforce_db_readonly=enforce_db_readonly,
        )

    # ----------------------- Validation utilities ---------------------------

    def ensure_pagination(
        self, *, page: int, limit: int, sort: Iterable[str] | None = None
    ) -> Pagination:
        """
        Build a Pagination value object with basic clamping.

        :param page: 1-based page number.
        :param limit: Page size.
        :param sort: Sort tokens like ``["-checked_out_at"]``.
        :returns: Pagination instance.
        :rtype: Pagination
        """
        page = max(1, int(page))
        limit = max(1, int(limit))
        return Pagination(page=page, limit=limit, sort=list(sort or []))

    def ensure_admin(self, role) -> None:
        """
        :raises AuthorizationError: Unless ``role`` is ``admin``.
        """
        if not is_admin(role):
            raise AuthorizationError("Administrator role required.")

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if not isinstance(exc, ServiceError):
            return exc

        code = exc.code
        if isinstance(exc, ConflictError):
            # Conflicts carry their client-facing text in ``detail``
            return api_errors.Conflict(exc.detail, code=code)
        message = str(exc)

        if isinstance(exc, ValidationError):
            details = {"field": exc.field} if exc.field else None
            return api_errors.UnprocessableEntity(message, code=code, details=details)
        if isinstance(exc, NotFoundError):
            return api_errors.NotFound(message, code=code)
        if isinstance(exc, ExpiredError):
            return api_errors.Gone(message, code=code)
        if isinstance(exc, AuthenticationError):
            return api_errors.Unauthorized(message, code=code)
        if isinstance(exc, AuthorizationError):
            return api_errors.Forbidden(message, code=code)
        if isinstance(exc, TransientError):
            return api_errors.ServiceUnavailable(message, code=code)

        return api_errors.APIError(message=message, status_code=400, code=code)
