"""
Classification of database failures into repository error kinds.

Every repository method is wrapped with ``handle_db_errors`` so that
callers only ever see ``RepositoryError``.
"""

import logging
from functools import wraps
from typing import Callable, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, NoResultFound, SQLAlchemyError

from bookrent.constants import SQLiteMessage, SQLState
from bookrent.exceptions import RepositoryError, RepositoryErrorKind

logger = logging.getLogger(__name__)


def _sqlstate(error: SQLAlchemyError) -> Optional[str]:
    """Return the driver SQLSTATE when one is available (psycopg2 or psycopg 3)."""
    orig = getattr(error, 'orig', None)
    if orig is None:
        return None
    return getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)


def classify_db_error(error: Exception, operation: Optional[str] = None) -> RepositoryError:
    """
    Map a database exception to a ``RepositoryError``.

    Args:
        error: Exception raised by SQLAlchemy or the driver
        operation: Name of the repository operation, kept in error details

    Returns:
        RepositoryError with the matching kind and the original message
    """
    if isinstance(error, RepositoryError):
        return error

    if isinstance(error, NoResultFound):
        return RepositoryError(RepositoryErrorKind.NOT_FOUND, str(error), operation)

    orig = getattr(error, 'orig', None)
    message = str(orig) if orig is not None else str(error)
    code = _sqlstate(error) if isinstance(error, SQLAlchemyError) else None

    if isinstance(error, (IntegrityError, DBAPIError)):
        if code == SQLState.UNIQUE_VIOLATION or SQLState.UNIQUE_VIOLATION in message \
                or SQLiteMessage.UNIQUE in message:
            return RepositoryError(RepositoryErrorKind.UNIQUE_CONSTRAINT, message, operation)
        if code == SQLState.FOREIGN_KEY_VIOLATION or SQLState.FOREIGN_KEY_VIOLATION in message \
                or SQLiteMessage.FOREIGN_KEY in message:
            return RepositoryError(RepositoryErrorKind.FOREIGN_KEY_CONSTRAINT, message, operation)
        if code == SQLState.UNDEFINED_COLUMN or SQLState.UNDEFINED_COLUMN in message \
                or SQLiteMessage.NO_SUCH_COLUMN in message:
            return RepositoryError(RepositoryErrorKind.INVALID_FIELD, message, operation)

    logger.error(f"Unknown/unexpected database error in {operation or 'repository'}: {message}")
    return RepositoryError(RepositoryErrorKind.UNKNOWN, message, operation)


def handle_db_errors(operation_name: str) -> Callable:
    """
    Decorator converting SQLAlchemy failures raised by a repository method
    into ``RepositoryError``.

    Args:
        operation_name: Name recorded in the error details (e.g. "book.create")

    Example:
        @handle_db_errors("book.get_by_id")
        def get_by_id(self, id):
            ...
    """
    def decorator(func: Callable):
        @wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except RepositoryError:
                raise
            except SQLAlchemyError as e:
                raise classify_db_error(e, operation_name) from e

        return wrapper

    return decorator


def not_found(model_name: str, **criteria) -> RepositoryError:
    """Build a NOT_FOUND error describing the lookup criteria."""
    described = ", ".join(f"{key}={value!r}" for key, value in criteria.items())
    return RepositoryError(RepositoryErrorKind.NOT_FOUND, f"{model_name} not found ({described})")
