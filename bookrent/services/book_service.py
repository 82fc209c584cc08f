"""
Book Service

Catalog operations on books: lookup, creation, manual stock correction
and removal.
"""

import logging
from typing import Any, Callable, Dict, List, Union

from bookrent.exceptions import ActiveBookRentsError
from bookrent.models import Book
from bookrent.repositories.interfaces import IUnitOfWork
from bookrent.schemas import BookCreate, BookRead, StockUpdate, parse_request
from bookrent.utils.logging_utils import log_operation
from .error_translator import translate_repository_errors
from .interfaces import IBookService

logger = logging.getLogger(__name__)


class BookService(IBookService):
    """Service for book catalog business logic."""

    def __init__(self, uow_factory: Callable[[], IUnitOfWork]):
        self.uow_factory = uow_factory

    @translate_repository_errors("Get book")
    def get_by_id(self, book_id: int) -> BookRead:
        with self.uow_factory() as uow:
            return BookRead.model_validate(uow.books.get_by_id(book_id))

    @translate_repository_errors("Search books")
    def get_by_title(self, title: str) -> List[BookRead]:
        with self.uow_factory() as uow:
            return [BookRead.model_validate(b) for b in uow.books.get_by_title(title or '')]

    @log_operation("create_book")
    @translate_repository_errors("Create book")
    def create(self, book: Union[BookCreate, Dict[str, Any]]) -> BookRead:
        """
        Add a book to the catalog.

        Raises:
            InvalidArgumentsError: If the payload is invalid
            AlreadyExistError: If the book collides with an existing row
        """
        payload = parse_request(BookCreate, book)
        with self.uow_factory() as uow:
            created = uow.books.create(Book(**payload.model_dump()))
            result = BookRead.model_validate(created)

        logger.info(f"Book {result.id} created: {result.title!r} (stock {result.stock})")
        return result

    @log_operation("update_stock")
    @translate_repository_errors("Update stock")
    def update_stock(self, book_id: int, new_stock: int) -> BookRead:
        """
        Overwrite the stock count of a book.

        Args:
            book_id: Book ID
            new_stock: New stock value, must be positive

        Raises:
            InvalidArgumentsError: If new_stock is not positive (checked before any read)
            NotFoundError: If the book does not exist
        """
        payload = parse_request(StockUpdate, {"stock": new_stock})
        with self.uow_factory() as uow:
            book = uow.books.get_by_id(book_id, for_update=True)
            uow.books.update(book, {"stock": payload.stock})
            return BookRead.model_validate(book)

    @log_operation("delete_book")
    @translate_repository_errors("Delete book")
    def delete(self, book_id: int) -> None:
        """
        Remove a book from the catalog.

        Raises:
            NotFoundError: If the book does not exist
            ActiveBookRentsError: If copies of the book are still rented
        """
        with self.uow_factory() as uow:
            book = uow.books.get_by_id(book_id)
            active = uow.rents.count_active(book_id=book.id)
            if active:
                raise ActiveBookRentsError("book", book.id, active)
            uow.books.delete(book)

        logger.info(f"Book {book_id} deleted")
