"""
Dependency providers.

Factory functions that build the engine, the unit-of-work factory and the
services from one ``Settings`` value, so callers and tests can swap any
piece.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from bookrent.config.settings import Settings, load_settings
from bookrent.database import create_db_engine, create_session_factory
from bookrent.init_db import init_database
from bookrent.repositories.interfaces import IUnitOfWork
from bookrent.repositories.unit_of_work import UnitOfWork
from bookrent.services.book_service import BookService
from bookrent.services.expiry_scheduler import ExpiryScheduler
from bookrent.services.interfaces import IBookService, IRentDetailsService, IUserService
from bookrent.services.rent_details_service import RentDetailsService
from bookrent.services.user_service import UserService
from bookrent.utils.logging_utils import configure_logging


def get_unit_of_work_factory(session_factory: sessionmaker) -> Callable[[], IUnitOfWork]:
    """
    Factory function for creating UnitOfWork instances.

    Args:
        session_factory: Session factory bound to the engine

    Returns:
        Zero-argument callable producing a fresh unit of work
    """
    return partial(UnitOfWork, session_factory)


def get_rent_details_service(
    uow_factory: Callable[[], IUnitOfWork],
    settings: Settings,
) -> IRentDetailsService:
    return RentDetailsService(uow_factory, settings)


def get_book_service(uow_factory: Callable[[], IUnitOfWork]) -> IBookService:
    return BookService(uow_factory)


def get_user_service(uow_factory: Callable[[], IUnitOfWork]) -> IUserService:
    return UserService(uow_factory)


def get_expiry_scheduler(service: IRentDetailsService, settings: Settings) -> ExpiryScheduler:
    return ExpiryScheduler(service, settings.sweep_interval_seconds)


@dataclass
class Container:
    """Everything a caller needs, built once at startup."""

    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    uow_factory: Callable[[], IUnitOfWork]
    rent_details_service: IRentDetailsService
    book_service: IBookService
    user_service: IUserService
    expiry_scheduler: ExpiryScheduler

    def close(self):
        self.expiry_scheduler.stop()
        self.engine.dispose()


def build_container(settings: Optional[Settings] = None, setup_logging: bool = True) -> Container:
    """
    Wire the application from settings.

    Configures logging, creates the engine, prepares the schema and builds
    the services.

    Args:
        settings: Settings to use (read from the environment if omitted)
        setup_logging: Install log handlers from settings

    Returns:
        Container holding the wired components
    """
    settings = settings or load_settings()
    if setup_logging:
        configure_logging(settings)

    engine = create_db_engine(settings)
    init_database(engine, settings)
    session_factory = create_session_factory(engine)
    uow_factory = get_unit_of_work_factory(session_factory)
    rent_details_service = get_rent_details_service(uow_factory, settings)

    return Container(
        settings=settings,
        engine=engine,
        session_factory=session_factory,
        uow_factory=uow_factory,
        rent_details_service=rent_details_service,
        book_service=get_book_service(uow_factory),
        user_service=get_user_service(uow_factory),
        expiry_scheduler=get_expiry_scheduler(rent_details_service, settings),
    )
