import sys
from datetime import datetime, timedelta
from pathlib import Path

# Add project root to Python path FIRST
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir))

# Now import after path is set
import pytest

from bookrent.config.settings import Settings
from bookrent.database import Base, create_db_engine, create_session_factory
from bookrent.dependencies import get_unit_of_work_factory
from bookrent.domain.value_objects import RentStatus, UserRole
from bookrent.models import Book, RentDetails, User


class FrozenClock:
    """Callable clock that only moves when told to"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings():
    return Settings(database_url='sqlite:///:memory:')


@pytest.fixture
def engine(settings):
    """Create in-memory database for testing"""
    engine = create_db_engine(settings)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def uow_factory(session_factory):
    return get_unit_of_work_factory(session_factory)


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 3, 1, 12, 0, 0))


@pytest.fixture
def seed(session_factory):
    """Commit rows in a throwaway session and return them (still readable)"""
    def _seed(*objs):
        with session_factory() as session:
            session.add_all(objs)
            session.commit()
        return objs if len(objs) > 1 else objs[0]
    return _seed


@pytest.fixture
def user(seed):
    return seed(User(firstname='john', lastname='doe', email='john@example.com', password='secret'))


@pytest.fixture
def admin(seed):
    return seed(User(
        firstname='jane', lastname='roe', email='jane@example.com',
        password='secret', role=UserRole.ADMIN,
    ))


@pytest.fixture
def book(seed):
    return seed(Book(title='title1', content='content1', stock=2))


@pytest.fixture
def make_rent(seed, clock):
    """Insert a rental directly, bypassing the service"""
    def _make_rent(user, book, status=RentStatus.RENTED, deadline_in_days=30, returned_at=None):
        created_at = clock() - timedelta(days=1)
        return seed(RentDetails(
            user_id=user.id,
            book_id=book.id,
            status=status,
            created_at=created_at,
            return_deadline=clock() + timedelta(days=deadline_in_days),
            returned_at=returned_at,
        ))
    return _make_rent


@pytest.fixture
def fetch_book(session_factory):
    """Read a book back in a fresh session"""
    def _fetch(book_id):
        with session_factory() as session:
            return session.get(Book, book_id)
    return _fetch


@pytest.fixture
def fetch_rent(session_factory):
    def _fetch(rent_id):
        with session_factory() as session:
            return session.get(RentDetails, rent_id)
    return _fetch


@pytest.fixture
def count_rents(session_factory):
    def _count():
        with session_factory() as session:
            return session.query(RentDetails).count()
    return _count
