"""
Persistence port.

Abstract contracts the services depend on. The SQLAlchemy repositories in
this package implement them; tests or other storage adapters may provide
their own. Every method either returns its result or raises
``RepositoryError``.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List

from bookrent.domain.value_objects import RentStatus


class IBookRepository(ABC):
    """Book storage operations."""

    @abstractmethod
    def get_by_id(self, id: int, for_update: bool = False) -> Any:
        """
        Fetch a book.

        Args:
            id: Book ID
            for_update: Lock the row until the unit of work ends, where supported
        """
        pass

    @abstractmethod
    def get_by_title(self, title: str) -> List[Any]:
        """Fetch books whose title contains ``title``; empty string matches all."""
        pass

    @abstractmethod
    def create(self, book: Any) -> Any:
        pass

    @abstractmethod
    def update(self, book: Any, updates: Dict[str, Any]) -> Any:
        pass

    @abstractmethod
    def delete(self, book: Any) -> None:
        pass

    @abstractmethod
    def adjust_stock(self, book_id: int, delta: int) -> bool:
        """
        Atomically add ``delta`` to a book's stock unless it would go negative.

        Returns:
            True if the row was changed, False if the guard rejected it
        """
        pass


class IUserRepository(ABC):
    """User storage operations."""

    @abstractmethod
    def get_by_id(self, id: int) -> Any:
        pass

    @abstractmethod
    def get_by_email(self, email: str) -> Any:
        pass

    @abstractmethod
    def get_by_name(self, firstname: str, lastname: str) -> List[Any]:
        pass

    @abstractmethod
    def create(self, user: Any) -> Any:
        pass

    @abstractmethod
    def update(self, user: Any, updates: Dict[str, Any]) -> Any:
        pass

    @abstractmethod
    def delete(self, user: Any) -> None:
        pass


class IRentDetailsRepository(ABC):
    """Rental record storage operations."""

    @abstractmethod
    def get_by_id(self, id: int) -> Any:
        """Fetch a rental with its book and user joined."""
        pass

    @abstractmethod
    def create(self, rent: Any) -> Any:
        pass

    @abstractmethod
    def update(self, rent: Any, updates: Dict[str, Any]) -> Any:
        """
        Partial update of scalar columns; joined book/user are left as loaded.

        status, returned_at and return_deadline are rejected with INVALID_FIELD.
        """
        pass

    @abstractmethod
    def update_associations(self, rent: Any, updates: Dict[str, Any]) -> Any:
        """Partial update followed by a reload of the joined book and user."""
        pass

    @abstractmethod
    def get_by_user(self, user_id: int) -> List[Any]:
        pass

    @abstractmethod
    def get_by_book(self, book_id: int) -> List[Any]:
        pass

    @abstractmethod
    def get_by_status(self, status: RentStatus) -> List[Any]:
        pass

    @abstractmethod
    def count_active(self, book_id: int | None = None, user_id: int | None = None) -> int:
        """Count RENTED records, optionally for one book or one user."""
        pass

    @abstractmethod
    def transition_status(
        self,
        rent_id: int,
        from_status: RentStatus,
        to_status: RentStatus,
        returned_at: datetime | None = None,
    ) -> bool:
        """
        Atomically move a rental from ``from_status`` to ``to_status``.

        Returns:
            True if the row was still in ``from_status`` and was changed
        """
        pass

    @abstractmethod
    def iter_active(self, batch_size: int) -> Any:
        """
        Stream every rental whose status is not RETURNED.

        Returns:
            A closable, non-restartable iterator of ``ActiveRent`` snapshots
        """
        pass


class IUnitOfWork(ABC):
    """
    Transactional scope over the three repositories.

    Used as a context manager: a clean exit commits, an exception rolls
    back every write made inside the block.
    """

    books: IBookRepository
    users: IUserRepository
    rents: IRentDetailsRepository

    @abstractmethod
    def __enter__(self) -> "IUnitOfWork":
        pass

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> bool:
        pass

    @abstractmethod
    def commit(self) -> None:
        pass

    @abstractmethod
    def rollback(self) -> None:
        pass
