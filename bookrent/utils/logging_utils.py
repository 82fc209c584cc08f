"""
Structured Logging Utilities

Provides utilities for adding structured context to log messages and for
installing the application's log handlers at startup.
"""

import inspect
import json
import logging
import sys
from contextvars import ContextVar
from functools import wraps
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from bookrent.config.settings import Settings
from bookrent.exceptions import ServiceError, ServiceErrorKind


# Context variable for operation-scoped logging context
_logging_context: ContextVar[Dict[str, Any]] = ContextVar('logging_context', default={})

# Argument names copied into the log context by ``log_operation``
_CONTEXT_ARGUMENTS = ("book_id", "user_id", "rent_details_id", "status", "email")

# LogRecord attributes that are not user-supplied context
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord('', 0, '', 0, '', (), None).__dict__
) | {'message', 'asctime'}

_HANDLER_MARKER = '_bookrent_handler'

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class StructuredLogger:
    """
    Wrapper around standard logger that adds structured context.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("Book rented", extra={
            "book_id": book.id,
            "user_id": user.id,
        })
    """

    def __init__(self, name: str):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically __name__)
        """
        self.logger = logging.getLogger(name)

    def _add_context(self, extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        Add context from ContextVar to extra dict.

        Args:
            extra: Additional context dict

        Returns:
            Merged context dict
        """
        context = _logging_context.get().copy()
        if extra:
            context.update(extra)
        return context

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log debug message with structured context."""
        self.logger.debug(message, extra=self._add_context(extra))

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with structured context."""
        self.logger.info(message, extra=self._add_context(extra))

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with structured context."""
        self.logger.warning(message, extra=self._add_context(extra))

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None, exc_info: bool = False):
        """Log error message with structured context."""
        self.logger.error(message, extra=self._add_context(extra), exc_info=exc_info)


def set_logging_context(**kwargs):
    """
    Set logging context for the current operation.

    This context will be automatically included in all log messages
    emitted through ``StructuredLogger`` within the current context.

    Example:
        set_logging_context(request_id="abc-123", user_id=42)
    """
    context = _logging_context.get().copy()
    context.update(kwargs)
    _logging_context.set(context)


def clear_logging_context():
    """Clear the logging context."""
    _logging_context.set({})


def get_logging_context() -> Dict[str, Any]:
    return _logging_context.get().copy()


def _extract_context(func, operation_name: str, args, kwargs) -> Dict[str, Any]:
    context = {"operation": operation_name}
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        bound = None
    arguments = bound.arguments if bound else kwargs
    for key in _CONTEXT_ARGUMENTS:
        if key in arguments and arguments[key] is not None:
            value = arguments[key]
            context[key] = value.value if hasattr(value, 'value') else value
    return context


def _log_failure(logger: StructuredLogger, operation_name: str, context: Dict[str, Any], error: Exception):
    context["error"] = str(error)
    context["error_type"] = type(error).__name__
    if isinstance(error, ServiceError) and error.kind is not ServiceErrorKind.UNKNOWN:
        # Business rule rejections are expected outcomes, not faults
        context["error_kind"] = error.kind.value
        logger.warning(f"Rejected {operation_name}", extra=context)
    else:
        logger.error(f"Failed {operation_name}", extra=context, exc_info=True)


def log_operation(operation_name: str):
    """
    Decorator to automatically log operation start/end with structured context.

    Identifiers such as ``book_id`` or ``rent_details_id`` are picked up
    from the call arguments, positional or keyword.

    Args:
        operation_name: Name of the operation

    Example:
        @log_operation("rent_book")
        def rent_book(self, user_id: int, book_id: int):
            ...
    """
    def decorator(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)
            context = _extract_context(func, operation_name, args, kwargs)

            logger.debug(f"Starting {operation_name}", extra=context)

            try:
                result = await func(*args, **kwargs)
                logger.info(f"Completed {operation_name}", extra=context)
                return result
            except Exception as e:
                _log_failure(logger, operation_name, context, e)
                raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            logger = StructuredLogger(func.__module__)
            context = _extract_context(func, operation_name, args, kwargs)

            logger.debug(f"Starting {operation_name}", extra=context)

            try:
                result = func(*args, **kwargs)
                logger.info(f"Completed {operation_name}", extra=context)
                return result
            except Exception as e:
                _log_failure(logger, operation_name, context, e)
                raise

        if inspect.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


class JsonFormatter(logging.Formatter):
    """Render each record as a single JSON object, context fields included."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "caller": f"{record.module}:{record.lineno}",
        }
        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and not key.startswith('_'):
                payload[key] = value
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(settings: Settings) -> logging.Logger:
    """
    Install console and optional rotating file handlers on the root logger.

    Calling it again replaces the handlers installed by a previous call.

    Args:
        settings: Application settings (level, format, optional file path)

    Returns:
        The configured root logger
    """
    if settings.log_format == 'json':
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT)

    level = logging.getLevelName(settings.log_level.upper())
    root_logger = logging.getLogger()

    for handler in list(root_logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root_logger.removeHandler(handler)
            handler.close()

    handlers = []

    console_handler = logging.StreamHandler(sys.stdout)
    handlers.append(console_handler)

    if settings.log_file:
        # File handler with rotation (10MB per file, keep 5 backups)
        file_handler = RotatingFileHandler(
            settings.log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        handlers.append(file_handler)

    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(level)
        setattr(handler, _HANDLER_MARKER, True)
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
    logging.getLogger(__name__).info(
        f"Logging initialized (level={settings.log_level}, format={settings.log_format}, "
        f"file={settings.log_file or '-'})"
    )
    return root_logger
