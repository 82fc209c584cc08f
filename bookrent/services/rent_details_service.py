"""
Rent Details Service

Rental lifecycle: renting a copy, returning it, and sweeping overdue
loans to EXPIRED. Every multi-write operation runs inside one unit of
work so the rental row and the book stock change together or not at all.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Union

from bookrent.config.settings import Settings
from bookrent.domain.value_objects import RentStatus
from bookrent.exceptions import (
    BookAlreadyReturnedError,
    InvalidArgumentsError,
    LoanNotActiveError,
    NotEnoughBooksOnStockError,
    RepositoryError,
    RepositoryErrorKind,
)
from bookrent.models import RentDetails
from bookrent.repositories.interfaces import IUnitOfWork
from bookrent.schemas import RentDetailsRead, RentRequest, parse_request
from bookrent.utils.clock import utcnow
from bookrent.utils.logging_utils import log_operation
from .error_translator import translate_repository_errors
from .interfaces import IRentDetailsService

logger = logging.getLogger(__name__)

UnitOfWorkFactory = Callable[[], IUnitOfWork]


class RentDetailsService(IRentDetailsService):
    """Service for the rent -> return / expire lifecycle."""

    def __init__(
        self,
        uow_factory: UnitOfWorkFactory,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize RentDetailsService.

        Args:
            uow_factory: Callable returning a fresh unit of work
            settings: Loan period and stream batch size (defaults if omitted)
            clock: Source of the current naive UTC time
        """
        settings = settings or Settings()
        self.uow_factory = uow_factory
        self.loan_period = timedelta(days=settings.loan_period_days)
        self.stream_batch_size = settings.stream_batch_size
        self.clock = clock

    @log_operation("get_rent_details")
    @translate_repository_errors("Get rent details")
    def get_by_id(self, rent_details_id: int) -> RentDetailsRead:
        with self.uow_factory() as uow:
            return RentDetailsRead.model_validate(uow.rents.get_by_id(rent_details_id))

    @translate_repository_errors("Get rents by user")
    def get_by_user(self, user_id: int) -> List[RentDetailsRead]:
        with self.uow_factory() as uow:
            return [RentDetailsRead.model_validate(r) for r in uow.rents.get_by_user(user_id)]

    @translate_repository_errors("Get rents by book")
    def get_by_book(self, book_id: int) -> List[RentDetailsRead]:
        with self.uow_factory() as uow:
            return [RentDetailsRead.model_validate(r) for r in uow.rents.get_by_book(book_id)]

    @translate_repository_errors("Get rents by status")
    def get_by_status(self, status: Union[RentStatus, str]) -> List[RentDetailsRead]:
        """
        List rentals in one status.

        Raises:
            InvalidArgumentsError: If status is not a known RentStatus
        """
        try:
            status = status if isinstance(status, RentStatus) else RentStatus.from_string(status)
        except ValueError as e:
            raise InvalidArgumentsError(str(e), invalid_fields={"status": str(status)}) from e

        with self.uow_factory() as uow:
            return [RentDetailsRead.model_validate(r) for r in uow.rents.get_by_status(status)]

    @log_operation("rent_book")
    @translate_repository_errors("Rent book")
    def rent_book(self, user_id: int, book_id: int) -> RentDetailsRead:
        """
        Rent one copy of a book for a user.

        The stock check happens before any write. Creating the rental and
        decrementing the stock share one transaction; the decrement is
        guarded so a concurrent rent of the last copy fails instead of
        driving stock negative.

        Args:
            user_id: Borrowing user
            book_id: Book to rent

        Returns:
            The new rental, RENTED, with created_at and return_deadline set

        Raises:
            NotFoundError: If the user or the book does not exist or was deleted
            NotEnoughBooksOnStockError: If no copy is available
        """
        request = parse_request(RentRequest, {"user_id": user_id, "book_id": book_id})

        with self.uow_factory() as uow:
            user = uow.users.get_by_id(request.user_id)
            book = uow.books.get_by_id(request.book_id, for_update=True)
            if book.stock <= 0:
                raise NotEnoughBooksOnStockError(book.id, book.stock)

            now = self.clock()
            rent = RentDetails(
                user_id=user.id,
                book_id=book.id,
                status=RentStatus.RENTED,
                created_at=now,
                return_deadline=now + self.loan_period,
            )
            uow.rents.create(rent)

            if not uow.books.adjust_stock(book.id, -1):
                # Another transaction took the last copy after our read
                raise NotEnoughBooksOnStockError(book.id, 0)

            result = RentDetailsRead.model_validate(rent)

        logger.info(
            f"Book {book_id} rented to user {user_id} as rent {result.id} "
            f"(due {result.return_deadline.isoformat()})"
        )
        return result

    @log_operation("return_book")
    @translate_repository_errors("Return book")
    def return_book(self, rent_details_id: int) -> RentDetailsRead:
        """
        Close a loan and put the copy back on stock.

        Args:
            rent_details_id: Rental to return

        Returns:
            The rental, RETURNED, with returned_at stamped
        """
        with self.uow_factory() as uow:
            rent = uow.rents.get_by_id(rent_details_id)
            status = RentStatus(rent.status)

            if status is RentStatus.RETURNED:
                raise BookAlreadyReturnedError(rent.id)
            if not status.can_transition_to(RentStatus.RETURNED):
                raise LoanNotActiveError(rent.id, status.value)

            returned = uow.rents.transition_status(
                rent.id,
                RentStatus.RENTED,
                RentStatus.RETURNED,
                returned_at=self.clock(),
            )
            if not returned:
                # A concurrent return or sweep closed it after our read
                raise BookAlreadyReturnedError(rent.id)

            if not uow.books.adjust_stock(rent.book_id, 1):
                raise RepositoryError(
                    RepositoryErrorKind.UNKNOWN,
                    f"Stock of book {rent.book_id} could not be incremented",
                    "book.adjust_stock",
                )

            result = RentDetailsRead.model_validate(rent)

        logger.info(f"Rent {rent_details_id} returned, book {result.book_id} back on stock")
        return result

    @log_operation("update_to_expired")
    @translate_repository_errors("Expire overdue rents")
    def update_to_expired(self) -> int:
        """
        Sweep open rentals and expire the overdue ones.

        Each RENTED rental whose deadline is strictly before the time the
        sweep started becomes EXPIRED in its own transaction. EXPIRED
        rentals are seen but left alone. A failed update stops the sweep; rentals expired earlier in
        the same pass stay expired.

        Returns:
            Number of rentals expired
        """
        expired = 0
        seen = 0
        now = self.clock()

        with self.uow_factory() as reader, reader.rents.iter_active(self.stream_batch_size) as stream:
            for rent in stream:
                seen += 1
                if not rent.is_overdue(now):
                    continue
                with self.uow_factory() as writer:
                    if writer.rents.transition_status(rent.id, RentStatus.RENTED, RentStatus.EXPIRED):
                        expired += 1
                        logger.debug(f"Rent {rent.id} expired (deadline {rent.return_deadline.isoformat()})")

        logger.info(f"Expiry sweep finished: {expired} of {seen} open rent(s) expired")
        return expired
