"""
Service layer: business rules on top of the repositories.
"""

from .book_service import BookService
from .error_translator import to_service_error, translate_repository_errors
from .expiry_scheduler import ExpiryScheduler
from .rent_details_service import RentDetailsService
from .user_service import UserService

__all__ = [
    "BookService",
    "ExpiryScheduler",
    "RentDetailsService",
    "UserService",
    "to_service_error",
    "translate_repository_errors",
]
