"""
Book repository for book-specific data access operations.
"""

from typing import List

from sqlalchemy import update
from sqlalchemy.orm import Session

from bookrent.models import Book as BookModel
from .base_repository import BaseRepository
from .errors import handle_db_errors, not_found
from .interfaces import IBookRepository


class BookRepository(BaseRepository[BookModel], IBookRepository):
    """Repository for Book model operations."""

    def __init__(self, db: Session):
        super().__init__(db, BookModel)

    @handle_db_errors("book.get_by_id")
    def get_by_id(self, id: int, for_update: bool = False) -> BookModel:
        """
        Get a book by ID.

        Args:
            id: Book ID
            for_update: Take a row lock (SELECT ... FOR UPDATE) where the backend supports it

        Returns:
            Book instance

        Raises:
            RepositoryError: NOT_FOUND if the book does not exist or was deleted
        """
        query = self._query().filter(self.model.id == id)
        if for_update:
            query = query.with_for_update()
        book = query.first()
        if book is None:
            raise not_found(self.model_name, id=id)
        return book

    @handle_db_errors("book.get_by_title")
    def get_by_title(self, title: str) -> List[BookModel]:
        """
        Find books whose title contains the given text.

        Args:
            title: Substring to match; an empty string matches every book

        Returns:
            Matching books ordered by ID
        """
        return self._query().filter(
            self.model.title.contains(title, autoescape=True)
        ).order_by(self.model.id).all()

    @handle_db_errors("book.adjust_stock")
    def adjust_stock(self, book_id: int, delta: int) -> bool:
        """
        Add delta to the stock of a book in a single guarded UPDATE.

        The row only changes if the resulting stock is non-negative, so two
        concurrent decrements of the last copy cannot both succeed.

        Args:
            book_id: Book ID
            delta: Signed change (-1 on rent, +1 on return)

        Returns:
            True if the stock was changed
        """
        result = self.db.execute(
            update(self.model)
            .where(self.model.id == book_id, self.model.stock + delta >= 0)
            .values(stock=self.model.stock + delta)
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        if changed:
            # Keep an already loaded instance in step with the row
            book = self.db.get(self.model, book_id)
            self.db.refresh(book, attribute_names=['stock'])
        return changed
