"""
Translation of repository errors into service errors.

Services never let a ``RepositoryError`` escape: the decorator below
re-raises it as the matching ``ServiceError`` subclass.
"""

import logging
from functools import wraps
from typing import Callable, Dict, Optional, Type

from bookrent.exceptions import (
    AlreadyExistError,
    NotFoundError,
    RepositoryError,
    RepositoryErrorKind,
    ServiceError,
    ServiceErrorKind,
    UnknownServiceError,
)

logger = logging.getLogger(__name__)

_KIND_MAP: Dict[RepositoryErrorKind, ServiceErrorKind] = {
    RepositoryErrorKind.NOT_FOUND: ServiceErrorKind.NOT_FOUND,
    RepositoryErrorKind.UNIQUE_CONSTRAINT: ServiceErrorKind.ALREADY_EXIST,
    RepositoryErrorKind.INVALID_FIELD: ServiceErrorKind.UNKNOWN,
    RepositoryErrorKind.FOREIGN_KEY_CONSTRAINT: ServiceErrorKind.UNKNOWN,
    RepositoryErrorKind.UNKNOWN: ServiceErrorKind.UNKNOWN,
}

_ERROR_CLASSES: Dict[ServiceErrorKind, Type[ServiceError]] = {
    ServiceErrorKind.NOT_FOUND: NotFoundError,
    ServiceErrorKind.ALREADY_EXIST: AlreadyExistError,
}

GENERIC_FAILURE_MESSAGE = "The operation could not be completed"


def translate_kind(kind: Optional[RepositoryErrorKind]) -> ServiceErrorKind:
    """Map a repository error kind; anything not listed becomes UNKNOWN."""
    return _KIND_MAP.get(kind, ServiceErrorKind.UNKNOWN)


def to_service_error(error: Optional[RepositoryError]) -> Optional[ServiceError]:
    """
    Translate a repository error into a service error.

    Args:
        error: Repository error, or None when there was no error

    Returns:
        ServiceError of the mapped kind, or None for None.
        For UNKNOWN the message is generic and the root cause is kept in
        ``details["cause"]``.
    """
    if error is None:
        return None

    repository_kind = getattr(error, 'kind', None)
    kind = translate_kind(repository_kind)
    details = dict(getattr(error, 'details', {}) or {})
    details['repository_kind'] = repository_kind.value if isinstance(repository_kind, RepositoryErrorKind) else None

    if kind is ServiceErrorKind.UNKNOWN:
        details['cause'] = getattr(error, 'message', str(error))
        return UnknownServiceError(GENERIC_FAILURE_MESSAGE, details)

    return _ERROR_CLASSES[kind](error.message, details)


def translate_repository_errors(operation_name: str) -> Callable:
    """
    Decorator re-raising ``RepositoryError`` as the translated ``ServiceError``.

    Unknown failures are logged with their root cause; the caller only
    sees the generic message.

    Args:
        operation_name: Human-readable name of the operation (e.g. "Rent book")

    Example:
        @translate_repository_errors("Rent book")
        def rent_book(self, user_id, book_id):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except RepositoryError as e:
                service_error = to_service_error(e)
                if service_error.kind is ServiceErrorKind.UNKNOWN:
                    logger.error(f"{operation_name} - storage failure ({e.kind.value}): {e.message}")
                else:
                    logger.debug(f"{operation_name} - {service_error.kind.value}: {e.message}")
                raise service_error from e

        return wrapper

    return decorator
