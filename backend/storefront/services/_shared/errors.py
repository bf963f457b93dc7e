"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic**: no Flask or HTTP types appear
here. Each carries a stable ``code`` that clients can branch on.

The translation to HTTP responses (RFC 7807) is handled by
``storefront/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    PostgreSQL reports the constraint name; SQLite reports the columns, so
    callers may pass either.

    :param exc: Error raised by SQLAlchemy during flush/commit.
    :param constraint_name: Constraint name or ``table.column`` fragment.
    :returns: ``True`` when the driver message mentions ``constraint_name``.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    return constraint_name.lower() in message


# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``code`` is a stable snake_case identifier; ``str(err)`` is safe for clients.
    """

    code = "service_error"

    def __init__(self, message: str = "Service error", *, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code

    def __str__(self) -> str:
        return self.message


# --------------------------------------------------------------------------- #
# Validation / lookup
# --------------------------------------------------------------------------- #


class ValidationError(ServiceError):
    """Input rejected by a business rule (email policy, password length, ...)."""

    code = "validation_error"

    def __init__(self, message: str, *, code: str | None = None, field: str | None = None) -> None:
        super().__init__(message, code=code)
        self.field = field


@dataclass(slots=True, eq=False)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found.

    :param entity: Entity name (e.g., "Product").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    :param code: Stable error code.
    :type code: str
    """

    entity: str
    key: str | int
    code: str = "not_found"

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


# --------------------------------------------------------------------------- #
# Conflicts
# --------------------------------------------------------------------------- #


@dataclass(slots=True, eq=False)
class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule or a state precondition is violated.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    :param code: Stable error code.
    :type code: str
    """

    entity: str
    detail: str
    code: str = "conflict"

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class AlreadyResolvedError(ConflictError):
    """A single-use token was already consumed or invalidated."""

    def __init__(self, detail: str = "Token has already been used.") -> None:
        ConflictError.__init__(self, "Token", detail, "token_already_used")


class NoActiveCartError(ConflictError):
    """The caller has no cart that can be checked out."""

    def __init__(self, user_id: int) -> None:
        ConflictError.__init__(self, "Cart", f"No active cart for user {user_id}.", "no_active_cart")


class OutOfStockError(ConflictError):
    """Requested quantity exceeds the product's available stock."""

    def __init__(self, product_id: int, requested: int, available: int) -> None:
        ConflictError.__init__(
            self,
            "Product",
            f"Requested {requested} of product {product_id}; only {available} in stock.",
            "out_of_stock",
        )


# --------------------------------------------------------------------------- #
# Time bounds
# --------------------------------------------------------------------------- #


class ExpiredError(ServiceError):
    """A time-bounded grant is past its window."""

    code = "token_expired"

    def __init__(self, message: str = "Token has expired.") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Auth
# --------------------------------------------------------------------------- #


class AuthenticationError(ServiceError):
    """Credentials or session could not be verified."""

    code = "invalid_credentials"


class AuthorizationError(ServiceError):
    """Authenticated caller lacks permission."""

    code = "forbidden"

    def __init__(self, message: str = "You are not allowed to perform this action.") -> None:
        super().__init__(message)


# --------------------------------------------------------------------------- #
# Transient
# --------------------------------------------------------------------------- #


class TransientError(ServiceError):
    """Infrastructure failure worth retrying later."""

    code = "service_unavailable"


class StorageUnavailableError(TransientError):
    code = "storage_unavailable"

    def __init__(self, message: str = "Storage temporarily unavailable.") -> None:
        super().__init__(message)


class EmailDispatchError(TransientError):
    code = "email_dispatch_failed"

    def __init__(self, message: str = "Could not send the email. Please try again later.") -> None:
        super().__init__(message)


class EntropyUnavailableError(TransientError):
    code = "entropy_unavailable"

    def __init__(self, message: str = "Secure random source unavailable.") -> None:
        super().__init__(message)
