"""
Tests for database error classification.
"""

import pytest
from sqlalchemy.exc import IntegrityError, NoResultFound, OperationalError, ProgrammingError

from bookrent.exceptions import RepositoryError, RepositoryErrorKind
from bookrent.repositories.errors import classify_db_error, handle_db_errors, not_found


class FakePgError(Exception):
    """Driver exception carrying a SQLSTATE the way psycopg2 does"""

    def __init__(self, message, pgcode):
        super().__init__(message)
        self.pgcode = pgcode


class FakePg3Error(Exception):
    def __init__(self, message, sqlstate):
        super().__init__(message)
        self.sqlstate = sqlstate


class TestClassifyDbError:

    @pytest.mark.parametrize("message, kind", [
        ("UNIQUE constraint failed: users.email", RepositoryErrorKind.UNIQUE_CONSTRAINT),
        ("FOREIGN KEY constraint failed", RepositoryErrorKind.FOREIGN_KEY_CONSTRAINT),
        ("NOT NULL constraint failed: books.title", RepositoryErrorKind.UNKNOWN),
    ])
    def test_sqlite_messages(self, message, kind):
        error = IntegrityError("INSERT", {}, Exception(message))

        assert classify_db_error(error, "insert").kind is kind

    @pytest.mark.parametrize("pgcode, kind", [
        ("23505", RepositoryErrorKind.UNIQUE_CONSTRAINT),
        ("23503", RepositoryErrorKind.FOREIGN_KEY_CONSTRAINT),
        ("23502", RepositoryErrorKind.UNKNOWN),
    ])
    def test_postgres_sqlstate(self, pgcode, kind):
        error = IntegrityError("INSERT", {}, FakePgError("constraint violated", pgcode))

        assert classify_db_error(error).kind is kind

    def test_psycopg3_sqlstate(self):
        error = IntegrityError("INSERT", {}, FakePg3Error("duplicate key", "23505"))

        assert classify_db_error(error).kind is RepositoryErrorKind.UNIQUE_CONSTRAINT

    def test_undefined_column(self):
        sqlite_error = OperationalError("SELECT", {}, Exception("no such column: books.pages"))
        pg_error = ProgrammingError("SELECT", {}, FakePgError("column does not exist", "42703"))

        assert classify_db_error(sqlite_error).kind is RepositoryErrorKind.INVALID_FIELD
        assert classify_db_error(pg_error).kind is RepositoryErrorKind.INVALID_FIELD

    def test_no_result_is_not_found(self):
        assert classify_db_error(NoResultFound("No row was found")).kind is RepositoryErrorKind.NOT_FOUND

    def test_repository_error_passes_through(self):
        error = RepositoryError(RepositoryErrorKind.INVALID_FIELD, "bad field")

        assert classify_db_error(error) is error

    def test_anything_else_is_unknown_with_message(self):
        error = classify_db_error(OperationalError("SELECT", {}, Exception("disk I/O error")), "book.get_by_id")

        assert error.kind is RepositoryErrorKind.UNKNOWN
        assert error.message == "disk I/O error"
        assert error.details == {"kind": "UNKNOWN", "operation": "book.get_by_id"}


class TestHandleDbErrors:

    def test_converts_sqlalchemy_errors(self):
        @handle_db_errors("book.create")
        def create():
            raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: books.id"))

        with pytest.raises(RepositoryError) as exc_info:
            create()

        assert exc_info.value.kind is RepositoryErrorKind.UNIQUE_CONSTRAINT
        assert isinstance(exc_info.value.__cause__, IntegrityError)

    def test_leaves_other_errors_alone(self):
        @handle_db_errors("book.create")
        def create():
            raise ValueError("not a database problem")

        with pytest.raises(ValueError):
            create()

    def test_not_found_describes_criteria(self):
        error = not_found("User", email="a@example.com")

        assert error.kind is RepositoryErrorKind.NOT_FOUND
        assert error.message == "User not found (email='a@example.com')"
