"""
Unit of work: one session, one transaction, three repositories.
"""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from .book_repository import BookRepository
from .errors import classify_db_error
from .interfaces import IUnitOfWork
from .rent_details_repository import RentDetailsRepository
from .user_repository import UserRepository

logger = logging.getLogger(__name__)


class UnitOfWork(IUnitOfWork):
    """
    SQLAlchemy unit of work.

    Usage:
        with UnitOfWork(session_factory) as uow:
            book = uow.books.get_by_id(book_id, for_update=True)
            uow.rents.create(rent)
            uow.books.adjust_stock(book.id, -1)
        # committed here, or rolled back if the block raised
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Args:
            session_factory: Factory producing the session for this unit
        """
        self.session_factory = session_factory
        self.session: Session | None = None

    def __enter__(self) -> "UnitOfWork":
        if self.session is not None:
            raise RuntimeError("UnitOfWork is not reentrant")
        self.session = self.session_factory()
        self.books = BookRepository(self.session)
        self.users = UserRepository(self.session)
        self.rents = RentDetailsRepository(self.session)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc_type is None:
                self.commit()
            else:
                self.rollback()
        finally:
            self.session.close()
            self.session = None
        return False

    def commit(self) -> None:
        """
        Commit the transaction.

        Raises:
            RepositoryError: If the commit fails; the transaction is rolled back
        """
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            raise classify_db_error(e, "commit") from e

    def rollback(self) -> None:
        self.session.rollback()
        logger.debug("Unit of work rolled back")
