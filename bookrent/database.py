"""
Engine and session construction.

Nothing here is created at import time; callers build the engine from a
``Settings`` value and pass the session factory to whoever needs it.
"""
import logging

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from bookrent.config.settings import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def _set_sqlite_pragma(dbapi_conn, connection_record):
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA synchronous=NORMAL")
    cursor.execute("PRAGMA busy_timeout=5000")  # Wait up to 5s for locks instead of failing immediately
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_db_engine(settings: Settings) -> Engine:
    """
    Create the SQLAlchemy engine described by settings.

    SQLite engines get WAL mode, a busy timeout and foreign key
    enforcement on every new connection. In-memory SQLite shares one
    connection across the pool so every session sees the same database.

    Args:
        settings: Application settings

    Returns:
        Configured engine
    """
    kwargs = {'echo': settings.echo_sql}

    if settings.is_sqlite:
        kwargs['connect_args'] = {'check_same_thread': False}
        if settings.is_in_memory:
            kwargs['poolclass'] = StaticPool
    else:
        kwargs.update(
            pool_size=20,
            max_overflow=30,
            pool_pre_ping=True,  # Verify connections are alive before using
            pool_recycle=3600,  # Recycle connections after 1 hour to prevent stale connections
        )

    engine = create_engine(settings.database_url, **kwargs)

    if settings.is_sqlite:
        event.listen(engine, "connect", _set_sqlite_pragma)

    logger.info(f"Database engine created ({engine.url.get_backend_name()})")
    return engine


def create_session_factory(engine: Engine) -> sessionmaker:
    """
    Create a session factory bound to engine.

    Objects stay readable after commit so services can hand them back
    once their unit of work has closed.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)
