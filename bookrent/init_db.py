"""
Schema creation and optional seeding.

Mirrors the populate switches in settings: ``populate_migrate`` creates
missing tables, ``populate_init`` drops everything first and then runs
the seed statements from ``populate_file``.
"""
import logging
from pathlib import Path
from typing import List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from bookrent.config.settings import Settings
from bookrent.database import Base
from bookrent.exceptions import ConfigurationError, RepositoryError
from bookrent.repositories.errors import classify_db_error

# Register the model tables on Base.metadata
import bookrent.models  # noqa: F401

logger = logging.getLogger(__name__)


def load_statements_from_file(path: str) -> List[str]:
    """
    Read seed SQL, one statement per line.

    Blank lines and ``--`` comment lines are skipped.

    Raises:
        ConfigurationError: If the file cannot be read
    """
    seed_file = Path(path)
    try:
        lines = seed_file.read_text(encoding='utf-8').splitlines()
    except OSError as e:
        raise ConfigurationError(f"Cannot read seed file {path}: {e}", invalid_keys=['populate_file'])

    return [
        line.strip() for line in lines
        if line.strip() and not line.strip().startswith('--')
    ]


def populate_database(engine: Engine, statements: List[str]) -> int:
    """
    Execute seed statements in a single transaction.

    Returns:
        Number of statements executed

    Raises:
        RepositoryError: If any statement fails; nothing is inserted
    """
    try:
        with engine.begin() as conn:
            for statement in statements:
                conn.execute(text(statement))
    except SQLAlchemyError as e:
        raise classify_db_error(e, "populate") from e
    return len(statements)


def init_database(engine: Engine, settings: Settings) -> List[str]:
    """
    Prepare the schema according to settings.

    Args:
        engine: Database engine
        settings: Populate switches and seed file

    Returns:
        Names of the tables present afterwards
    """
    if settings.populate_migrate:
        if settings.populate_init:
            Base.metadata.drop_all(engine)
            logger.info("Dropped all tables")
        Base.metadata.create_all(engine)
        logger.info("Migrated DB")

    if settings.populate_init:
        statements = load_statements_from_file(settings.populate_file)
        try:
            count = populate_database(engine, statements)
        except RepositoryError as e:
            logger.error(f"Error while inserting rows in DB: {e.message}")
            raise
        logger.info(f"Populated DB with {settings.populate_file} ({count} statements)")

    return sorted(inspect(engine).get_table_names())
