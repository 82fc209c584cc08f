"""
Service Interfaces

Abstract base classes for the service layer. Callers (CLI, RPC handlers,
schedulers) depend on these rather than on the concrete classes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Union

from bookrent.domain.value_objects import RentStatus
from bookrent.schemas import BookCreate, BookRead, RentDetailsRead, UserCreate, UserRead


class IRentDetailsService(ABC):
    """
    Rental lifecycle operations.
    """

    @abstractmethod
    def get_by_id(self, rent_details_id: int) -> RentDetailsRead:
        """
        Get one rental with its book and user.

        Raises:
            NotFoundError: If no such rental exists
        """
        pass

    @abstractmethod
    def get_by_user(self, user_id: int) -> List[RentDetailsRead]:
        pass

    @abstractmethod
    def get_by_book(self, book_id: int) -> List[RentDetailsRead]:
        pass

    @abstractmethod
    def get_by_status(self, status: Union[RentStatus, str]) -> List[RentDetailsRead]:
        pass

    @abstractmethod
    def rent_book(self, user_id: int, book_id: int) -> RentDetailsRead:
        """
        Rent one copy of a book.

        Raises:
            NotFoundError: If the user or the book does not exist
            NotEnoughBooksOnStockError: If no copy is available
            UnknownServiceError: If the rental cannot be stored
        """
        pass

    @abstractmethod
    def return_book(self, rent_details_id: int) -> RentDetailsRead:
        """
        Return a rented book.

        Raises:
            NotFoundError: If the rental does not exist
            BookAlreadyReturnedError: If the rental is RETURNED (or EXPIRED,
                as its LoanNotActiveError subclass)
        """
        pass

    @abstractmethod
    def update_to_expired(self) -> int:
        """
        Expire every RENTED rental whose deadline has passed.

        Returns:
            Number of rentals expired by this sweep
        """
        pass


class IBookService(ABC):
    """
    Book catalog operations.
    """

    @abstractmethod
    def get_by_id(self, book_id: int) -> BookRead:
        pass

    @abstractmethod
    def get_by_title(self, title: str) -> List[BookRead]:
        pass

    @abstractmethod
    def create(self, book: Union[BookCreate, Dict[str, Any]]) -> BookRead:
        pass

    @abstractmethod
    def update_stock(self, book_id: int, new_stock: int) -> BookRead:
        pass

    @abstractmethod
    def delete(self, book_id: int) -> None:
        pass


class IUserService(ABC):
    """
    User account operations.
    """

    @abstractmethod
    def get_by_id(self, user_id: int) -> UserRead:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> UserRead:
        pass

    @abstractmethod
    def get_by_name(self, firstname: str, lastname: str) -> List[UserRead]:
        pass

    @abstractmethod
    def create(self, user: Union[UserCreate, Dict[str, Any]]) -> UserRead:
        pass

    @abstractmethod
    def delete(self, user_id: int) -> None:
        pass
