"""
User Service

Account lookup, registration and removal. Credentials are stored as
given; hashing belongs to whatever layer authenticates users.
"""

import logging
from typing import Any, Callable, Dict, List, Union

from bookrent.exceptions import ActiveBookRentsError
from bookrent.models import User
from bookrent.repositories.interfaces import IUnitOfWork
from bookrent.schemas import UserCreate, UserRead, parse_request
from bookrent.utils.logging_utils import log_operation
from .error_translator import translate_repository_errors
from .interfaces import IUserService

logger = logging.getLogger(__name__)


class UserService(IUserService):
    """Service for user account business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]):
        self.uow_factory = uow_factory

    @translate_repository_errors("Get user")
    def get_by_id(self, user_id: int) -> UserRead:
        with self.uow_factory() as uow:
            return UserRead.model_validate(uow.users.get_by_id(user_id))

    @translate_repository_errors("Get user by email")
    def get_by_email(self, email: str) -> UserRead:
        with self.uow_factory() as uow:
            return UserRead.model_validate(uow.users.get_by_email(email.strip().lower()))

    @translate_repository_errors("Search users")
    def get_by_name(self, firstname: str, lastname: str) -> List[UserRead]:
        with self.uow_factory() as uow:
            users = uow.users.get_by_name(firstname or '', lastname or '')
            return [UserRead.model_validate(u) for u in users]

    @log_operation("create_user")
    @translate_repository_errors("Create user")
    def create(self, user: Union[UserCreate, Dict[str, Any]]) -> UserRead:
        """
        Register a user.

        Raises:
            InvalidArgumentsError: If the payload is invalid
            AlreadyExistError: If the email is already registered
        """
        payload = parse_request(UserCreate, user)
        with self.uow_factory() as uow:
            created = uow.users.create(User(**payload.model_dump()))
            result = UserRead.model_validate(created)

        logger.info(f"User {result.id} created ({result.role.value})")
        return result

    @log_operation("delete_user")
    @translate_repository_errors("Delete user")
    def delete(self, user_id: int) -> None:
        """
        Remove a user.

        Raises:
            NotFoundError: If the user does not exist
            ActiveBookRentsError: If the user still holds rented books
        """
        with self.uow_factory() as uow:
            user = uow.users.get_by_id(user_id)
            active = uow.rents.count_active(user_id=user.id)
            if active:
                raise ActiveBookRentsError("user", user.id, active)
            uow.users.delete(user)

        logger.info(f"User {user_id} deleted")
