"""
RentDetails repository for rental-specific data access operations.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session, joinedload

from bookrent.domain.value_objects import RentStatus
from bookrent.models import RentDetails as RentDetailsModel
from .base_repository import BaseRepository
from .errors import handle_db_errors, not_found
from .interfaces import IRentDetailsRepository
from .rent_details_stream import ActiveRent, RentDetailsStream


class RentDetailsRepository(BaseRepository[RentDetailsModel], IRentDetailsRepository):
    """Repository for RentDetails model operations."""

    # Lifecycle columns change only through transition_status
    protected_fields = BaseRepository.protected_fields | {'status', 'returned_at', 'return_deadline'}

    def __init__(self, db: Session):
        super().__init__(db, RentDetailsModel)

    @handle_db_errors("rent.get_by_id")
    def get_by_id(self, id: int) -> RentDetailsModel:
        """
        Get a rental with its book and user eagerly loaded.

        Args:
            id: RentDetails ID

        Returns:
            RentDetails instance with ``book`` and ``user`` populated

        Raises:
            RepositoryError: NOT_FOUND if the rental does not exist
        """
        rent = self._query().options(
            joinedload(self.model.book),
            joinedload(self.model.user),
        ).filter(self.model.id == id).first()
        if rent is None:
            raise not_found(self.model_name, id=id)
        return rent

    @handle_db_errors("rent.update_associations")
    def update_associations(self, rent: RentDetailsModel, updates: Dict[str, Any]) -> RentDetailsModel:
        """
        Apply a partial update, then reload the joined book and user.

        Use this instead of ``update`` when ``book_id`` or ``user_id`` change
        and the caller needs the new related rows.

        Args:
            rent: RentDetails instance
            updates: Column name -> new value

        Returns:
            The same instance with relationships re-fetched
        """
        self.update(rent, updates)
        self.db.refresh(rent, attribute_names=['book', 'user'])
        return rent

    @handle_db_errors("rent.get_by_user")
    def get_by_user(self, user_id: int) -> List[RentDetailsModel]:
        return self._query().filter(self.model.user_id == user_id).order_by(self.model.id).all()

    @handle_db_errors("rent.get_by_book")
    def get_by_book(self, book_id: int) -> List[RentDetailsModel]:
        return self._query().filter(self.model.book_id == book_id).order_by(self.model.id).all()

    @handle_db_errors("rent.get_by_status")
    def get_by_status(self, status: RentStatus) -> List[RentDetailsModel]:
        return self._query().filter(self.model.status == status).order_by(self.model.id).all()

    @handle_db_errors("rent.count_active")
    def count_active(self, book_id: Optional[int] = None, user_id: Optional[int] = None) -> int:
        """
        Count rentals still in RENTED state.

        Args:
            book_id: Restrict to one book
            user_id: Restrict to one user

        Returns:
            Number of open loans
        """
        query = self.db.query(func.count(self.model.id)).filter(
            self.model.status == RentStatus.RENTED
        )
        if book_id is not None:
            query = query.filter(self.model.book_id == book_id)
        if user_id is not None:
            query = query.filter(self.model.user_id == user_id)
        return query.scalar() or 0

    @handle_db_errors("rent.transition_status")
    def transition_status(
        self,
        rent_id: int,
        from_status: RentStatus,
        to_status: RentStatus,
        returned_at: Optional[datetime] = None,
    ) -> bool:
        """
        Move a rental between statuses with a guarded UPDATE.

        The row changes only if it is still in ``from_status``, which makes a
        concurrent second transition of the same rental a no-op.

        Args:
            rent_id: RentDetails ID
            from_status: Status the row must currently have
            to_status: New status
            returned_at: Return timestamp, written only when given

        Returns:
            True if the row was changed

        Raises:
            ValueError: If the state machine does not allow the transition
        """
        if not from_status.can_transition_to(to_status):
            raise ValueError(f"Invalid rent status transition: {from_status.value} -> {to_status.value}")

        values: Dict[str, Any] = {'status': to_status}
        if returned_at is not None:
            values['returned_at'] = returned_at

        result = self.db.execute(
            update(self.model)
            .where(self.model.id == rent_id, self.model.status == from_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        changed = result.rowcount == 1
        if changed:
            rent = self.db.get(self.model, rent_id)
            self.db.refresh(rent, attribute_names=list(values) + ['updated_at'])
        return changed

    @handle_db_errors("rent.fetch_active_batch")
    def _fetch_active_batch(self, after_id: int, limit: int) -> List[ActiveRent]:
        rows = self.db.execute(
            select(
                self.model.id,
                self.model.user_id,
                self.model.book_id,
                self.model.status,
                self.model.return_deadline,
            )
            .where(self.model.status != RentStatus.RETURNED, self.model.id > after_id)
            .order_by(self.model.id)
            .limit(limit)
        ).all()
        return [
            ActiveRent(
                id=row.id,
                user_id=row.user_id,
                book_id=row.book_id,
                status=RentStatus(row.status),
                return_deadline=row.return_deadline,
            )
            for row in rows
        ]

    def iter_active(self, batch_size: int) -> RentDetailsStream:
        """
        Stream every rental that is not RETURNED (RENTED or EXPIRED).

        Args:
            batch_size: Rows read per round-trip

        Returns:
            RentDetailsStream of ActiveRent snapshots, in ID order
        """
        return RentDetailsStream(self._fetch_active_batch, batch_size)
