"""
Utility functions and decorators.
"""

from .clock import utcnow
from .logging_utils import StructuredLogger, configure_logging, log_operation

__all__ = ["utcnow", "StructuredLogger", "configure_logging", "log_operation"]
