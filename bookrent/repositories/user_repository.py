"""
User repository for user-specific data access operations.
"""

from typing import List

from sqlalchemy import or_
from sqlalchemy.orm import Session

from bookrent.models import User as UserModel
from .base_repository import BaseRepository
from .errors import handle_db_errors, not_found
from .interfaces import IUserRepository


class UserRepository(BaseRepository[UserModel], IUserRepository):
    """Repository for User model operations."""

    def __init__(self, db: Session):
        super().__init__(db, UserModel)

    @handle_db_errors("user.get_by_email")
    def get_by_email(self, email: str) -> UserModel:
        """
        Get a user by email address.

        Raises:
            RepositoryError: NOT_FOUND if no user has this email
        """
        user = self._query().filter(self.model.email == email).first()
        if user is None:
            raise not_found(self.model_name, email=email)
        return user

    @handle_db_errors("user.get_by_name")
    def get_by_name(self, firstname: str, lastname: str) -> List[UserModel]:
        """
        Find users whose first name or last name contains the given text.

        Args:
            firstname: First name fragment
            lastname: Last name fragment

        Returns:
            Matching users ordered by ID
        """
        return self._query().filter(
            or_(
                self.model.firstname.contains(firstname, autoescape=True),
                self.model.lastname.contains(lastname, autoescape=True),
            )
        ).order_by(self.model.id).all()
