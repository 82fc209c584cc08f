"""
UserRole Value Object
"""

from enum import Enum


class UserRole(str, Enum):
    """Access role of a user account."""

    ADMIN = "ADMIN"
    CUSTOMER = "CUSTOMER"

    def is_admin(self) -> bool:
        return self is UserRole.ADMIN
