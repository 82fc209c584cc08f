"""
Custom exception classes for the application.

Storage failures are raised as ``RepositoryError`` and carry a
``RepositoryErrorKind``. Services raise ``ServiceError`` subclasses that
carry a ``ServiceErrorKind``. Callers branch on ``error.kind`` rather than
on the concrete class.
"""

from enum import Enum


class ApplicationError(Exception):
    """Base exception for all application errors"""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ConfigurationError(ApplicationError):
    """Raised when there's a configuration issue"""

    def __init__(self, message: str, invalid_keys: list[str] | None = None):
        details = {"invalid_keys": invalid_keys} if invalid_keys else {}
        super().__init__(message, details)


class ValidationError(ApplicationError):
    """Raised when validation fails"""

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class RepositoryErrorKind(str, Enum):
    """Storage-layer failure classification."""

    UNKNOWN = "UNKNOWN"
    NOT_FOUND = "NOT_FOUND"
    INVALID_FIELD = "INVALID_FIELD"
    UNIQUE_CONSTRAINT = "UNIQUE_CONSTRAINT"
    FOREIGN_KEY_CONSTRAINT = "FOREIGN_KEY_CONSTRAINT"


class RepositoryError(ApplicationError):
    """Raised by repositories for any failed fetch or mutation"""

    def __init__(self, kind: RepositoryErrorKind, message: str, operation: str | None = None):
        self.kind = kind
        details = {"kind": kind.value}
        if operation:
            details["operation"] = operation
        super().__init__(message, details)


class ServiceErrorKind(str, Enum):
    """Service-level failure classification visible to callers."""

    UNKNOWN = "UNKNOWN"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXIST = "ALREADY_EXIST"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    NOT_ENOUGH_BOOKS_ON_STOCK = "NOT_ENOUGH_BOOKS_ON_STOCK"
    BOOK_ALREADY_RETURNED = "BOOK_ALREADY_RETURNED"
    ACTIVE_BOOK_RENTS = "ACTIVE_BOOK_RENTS"


class ServiceError(ApplicationError):
    """Base class for errors crossing the service boundary"""

    kind: ServiceErrorKind = ServiceErrorKind.UNKNOWN

    def __init__(
        self,
        message: str | None = None,
        details: dict | None = None,
        kind: ServiceErrorKind | None = None,
    ):
        if kind is not None:
            self.kind = kind
        super().__init__(message or self.kind.value.replace("_", " ").capitalize(), details)


class NotFoundError(ServiceError):
    """Raised when the requested entity does not exist"""

    kind = ServiceErrorKind.NOT_FOUND


class AlreadyExistError(ServiceError):
    """Raised when a unique key is already taken"""

    kind = ServiceErrorKind.ALREADY_EXIST


class InvalidArgumentsError(ServiceError):
    """Raised when caller input fails validation"""

    kind = ServiceErrorKind.INVALID_ARGUMENTS

    def __init__(self, message: str, invalid_fields: dict | None = None):
        details = {"invalid_fields": invalid_fields} if invalid_fields else {}
        super().__init__(message, details)


class NotEnoughBooksOnStockError(ServiceError):
    """Raised when a book has no copies left to rent"""

    kind = ServiceErrorKind.NOT_ENOUGH_BOOKS_ON_STOCK

    def __init__(self, book_id: int, stock: int | None = None):
        details = {"book_id": book_id}
        if stock is not None:
            details["stock"] = stock
        super().__init__(f"Book {book_id} has no copies on stock", details)


class BookAlreadyReturnedError(ServiceError):
    """Raised when returning a loan that is already closed"""

    kind = ServiceErrorKind.BOOK_ALREADY_RETURNED

    def __init__(self, rent_details_id: int, message: str | None = None):
        super().__init__(
            message or f"Rent {rent_details_id} has already been returned",
            {"rent_details_id": rent_details_id},
        )


class LoanNotActiveError(BookAlreadyReturnedError):
    """Raised when returning a loan that expired instead of being returned"""

    def __init__(self, rent_details_id: int, status: str):
        super().__init__(
            rent_details_id,
            f"Rent {rent_details_id} is not active (status {status})",
        )
        self.details["status"] = status


class ActiveBookRentsError(ServiceError):
    """Raised when an entity cannot be removed because loans are still open"""

    kind = ServiceErrorKind.ACTIVE_BOOK_RENTS

    def __init__(self, entity: str, entity_id: int, active_rents: int):
        super().__init__(
            f"{entity.capitalize()} {entity_id} has {active_rents} active rent(s)",
            {"entity": entity, "entity_id": entity_id, "active_rents": active_rents},
        )


class UnknownServiceError(ServiceError):
    """Raised for unclassified failures; the root cause stays in ``details``"""

    kind = ServiceErrorKind.UNKNOWN
