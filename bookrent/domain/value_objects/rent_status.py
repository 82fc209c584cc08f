"""
RentStatus Value Object

Lifecycle state of a rental record.
"""

from enum import Enum
from typing import Set


class RentStatus(str, Enum):
    """
    Loan state enum.

    A loan is created RENTED and moves exactly once, either to RETURNED
    by the borrower or to EXPIRED by the overdue sweep.
    """

    RENTED = "RENTED"
    RETURNED = "RETURNED"
    EXPIRED = "EXPIRED"

    def is_terminal(self) -> bool:
        """Check if this state is terminal (no further transitions)."""
        return self in {RentStatus.RETURNED, RentStatus.EXPIRED}

    def is_active(self) -> bool:
        """Check if the book is still out with the borrower."""
        return self is RentStatus.RENTED

    def allowed_transitions(self) -> Set["RentStatus"]:
        valid_transitions = {
            RentStatus.RENTED: {RentStatus.RETURNED, RentStatus.EXPIRED},
            RentStatus.RETURNED: set(),
            RentStatus.EXPIRED: set(),
        }
        return valid_transitions[self]

    def can_transition_to(self, new_status: "RentStatus") -> bool:
        """
        Check if transition to new status is valid.

        Args:
            new_status: Target status

        Returns:
            True if transition is allowed
        """
        return new_status in self.allowed_transitions()

    @classmethod
    def from_string(cls, value: str) -> "RentStatus":
        """
        Create RentStatus from string value.

        Args:
            value: String representation (case-insensitive)

        Returns:
            RentStatus instance

        Raises:
            ValueError: If value is not a valid status
        """
        try:
            return cls(value.upper())
        except (ValueError, AttributeError):
            raise ValueError(f"Invalid rent status: {value}")
