"""
Lazy stream of rentals that are still open (RENTED or EXPIRED).

Rows are read in keyset-paginated batches. Each batch is fully fetched
before its rows are handed out, so no database cursor stays open while
the consumer works, and the consumer may write between items.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterator, List, Optional

from bookrent.domain.value_objects import RentStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActiveRent:
    """Snapshot of one streamed rental, detached from any session."""

    id: int
    user_id: int
    book_id: int
    status: RentStatus
    return_deadline: datetime

    def is_overdue(self, now: datetime) -> bool:
        return self.status is RentStatus.RENTED and self.return_deadline < now


# fetch_batch(after_id, limit) -> rows with id > after_id, ordered by id
BatchFetcher = Callable[[int, int], List[ActiveRent]]


class RentDetailsStream:
    """
    Finite, non-restartable iterator of ``ActiveRent`` snapshots.

    Usage:
        with repo.iter_active(batch_size=100) as stream:
            for rent in stream:
                ...

    Closing the stream (explicitly or by leaving the ``with`` block) stops
    any further batch reads; a closed or exhausted stream yields nothing.
    """

    def __init__(self, fetch_batch: BatchFetcher, batch_size: int):
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        self._fetch_batch = fetch_batch
        self.batch_size = batch_size
        self._iterator: Optional[Iterator[ActiveRent]] = self._generate()
        self.batches_read = 0
        self.items_yielded = 0

    @property
    def closed(self) -> bool:
        return self._iterator is None

    def _generate(self) -> Iterator[ActiveRent]:
        last_id = 0
        while True:
            batch = self._fetch_batch(last_id, self.batch_size)
            self.batches_read += 1
            for rent in batch:
                yield rent
            if len(batch) < self.batch_size:
                return
            last_id = batch[-1].id

    def __iter__(self) -> "RentDetailsStream":
        return self

    def __next__(self) -> ActiveRent:
        if self._iterator is None:
            raise StopIteration
        try:
            rent = next(self._iterator)
        except Exception:
            # Exhausted or failed; either way the stream is finished
            self.close()
            raise
        self.items_yielded += 1
        return rent

    def close(self) -> None:
        """Stop the stream; safe to call more than once."""
        if self._iterator is None:
            return
        self._iterator.close()
        self._iterator = None
        logger.debug(
            f"Active rent stream closed after {self.items_yielded} item(s) "
            f"in {self.batches_read} batch(es)"
        )

    def __enter__(self) -> "RentDetailsStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self.close()
        return False
