"""
Application-wide constants.

Centralizes the magic numbers and strings shared by the persistence and
service layers.
"""

# Loan period applied to every new rental
LOAN_PERIOD_DAYS = 30

# Rows fetched per round-trip by the active-rentals stream
DEFAULT_STREAM_BATCH_SIZE = 100

# Default expiry sweep cadence (1 hour)
DEFAULT_SWEEP_INTERVAL_SECONDS = 3600

DEFAULT_DATABASE_URL = "sqlite:///bookrent.db"

ENV_PREFIX = "BOOKRENT_"


class SQLState:
    """PostgreSQL SQLSTATE codes used to classify driver errors."""

    UNIQUE_VIOLATION = "23505"
    FOREIGN_KEY_VIOLATION = "23503"
    UNDEFINED_COLUMN = "42703"


class SQLiteMessage:
    """Fragments of SQLite error messages used when no SQLSTATE is available."""

    UNIQUE = "UNIQUE constraint failed"
    FOREIGN_KEY = "FOREIGN KEY constraint failed"
    NO_SUCH_COLUMN = "no such column"
