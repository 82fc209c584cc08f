"""
Base repository providing common CRUD operations.
"""

from typing import Any, Dict, Generic, Type, TypeVar

from sqlalchemy import inspect as sa_inspect
from sqlalchemy.orm import Query, Session

from bookrent.exceptions import RepositoryError, RepositoryErrorKind
from bookrent.utils.clock import utcnow
from .errors import handle_db_errors, not_found

T = TypeVar('T')


class BaseRepository(Generic[T]):
    """
    Generic base repository providing common CRUD operations.
    All specific repositories should inherit from this class.

    Models with a ``deleted_at`` column are soft deleted, and rows marked
    deleted are invisible to every query built by ``_query``.
    """

    # Columns that are never written through a partial update
    protected_fields = frozenset({'id', 'created_at', 'deleted_at'})

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    @property
    def model_name(self) -> str:
        return self.model.__name__

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model, 'deleted_at')

    def _query(self) -> Query:
        query = self.db.query(self.model)
        if self.soft_deletes:
            query = query.filter(self.model.deleted_at.is_(None))
        return query

    def _column_names(self) -> set:
        return {attr.key for attr in sa_inspect(self.model).column_attrs}

    def _validate_fields(self, fields) -> None:
        unknown = sorted(set(fields) - (self._column_names() - self.protected_fields))
        if unknown:
            raise RepositoryError(
                RepositoryErrorKind.INVALID_FIELD,
                f"Invalid field(s) for {self.model_name}: {', '.join(unknown)}",
            )

    @handle_db_errors("create")
    def create(self, obj: T) -> T:
        """
        Create a new record in the database.

        Args:
            obj: Model instance to create

        Returns:
            Created model instance with its identity assigned
        """
        self.db.add(obj)
        self.db.flush()
        return obj

    @handle_db_errors("get_by_id")
    def get_by_id(self, id: int) -> T:
        """
        Retrieve a record by its ID.

        Args:
            id: Primary key value

        Returns:
            Model instance

        Raises:
            RepositoryError: NOT_FOUND if no such record exists
        """
        obj = self._query().filter(self.model.id == id).first()
        if obj is None:
            raise not_found(self.model_name, id=id)
        return obj

    @handle_db_errors("update")
    def update(self, obj: T, updates: Dict[str, Any]) -> T:
        """
        Apply a partial, field-keyed update to a record.

        Args:
            obj: Model instance to update
            updates: Column name -> new value

        Returns:
            Updated model instance

        Raises:
            RepositoryError: INVALID_FIELD if a key is not a writable column
        """
        self._validate_fields(updates.keys())
        if not updates:
            return obj
        for key, value in updates.items():
            setattr(obj, key, value)
        self.db.flush()
        return obj

    @handle_db_errors("delete")
    def delete(self, obj: T) -> None:
        """
        Delete a record, softly when the model supports it.

        Args:
            obj: Model instance to delete
        """
        if self.soft_deletes:
            obj.deleted_at = utcnow()
        else:
            self.db.delete(obj)
        self.db.flush()
