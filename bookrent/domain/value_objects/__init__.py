"""
Domain Value Objects

Value objects are immutable types compared by value, not by ID.

- RentStatus: Lifecycle state of a loan
- UserRole: Access role of a user
"""

from .rent_status import RentStatus
from .user_role import UserRole

__all__ = ["RentStatus", "UserRole"]
