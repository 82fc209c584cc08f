"""
Repository layer for data access abstraction.

This package contains the persistence port (abstract interfaces), its
SQLAlchemy implementation and the unit of work that groups the
repositories into one transaction.
"""

from .base_repository import BaseRepository
from .book_repository import BookRepository
from .user_repository import UserRepository
from .rent_details_repository import RentDetailsRepository
from .rent_details_stream import ActiveRent, RentDetailsStream
from .unit_of_work import UnitOfWork

__all__ = [
    "BaseRepository",
    "BookRepository",
    "UserRepository",
    "RentDetailsRepository",
    "ActiveRent",
    "RentDetailsStream",
    "UnitOfWork",
]
