"""
Tests for the SQLAlchemy repositories.
"""

from datetime import datetime

import pytest

from bookrent.domain.value_objects import RentStatus
from bookrent.exceptions import RepositoryError, RepositoryErrorKind
from bookrent.models import Book, RentDetails, User
from bookrent.repositories import BookRepository, RentDetailsRepository, UserRepository


DEADLINE = datetime(2024, 4, 1)


class TestBookRepository:

    def test_create_assigns_id(self, db_session):
        repo = BookRepository(db_session)

        book = repo.create(Book(title='Dune', content='spice', stock=3))

        assert book.id is not None
        assert repo.get_by_id(book.id).title == 'Dune'

    def test_get_by_id_missing(self, db_session):
        with pytest.raises(RepositoryError) as exc_info:
            BookRepository(db_session).get_by_id(42)

        assert exc_info.value.kind is RepositoryErrorKind.NOT_FOUND

    def test_get_by_id_for_update(self, db_session, book):
        assert BookRepository(db_session).get_by_id(book.id, for_update=True).stock == 2

    def test_get_by_title_matches_substring(self, db_session, seed):
        seed(Book(title='The Hobbit'), Book(title='Hobbit Tales'), Book(title='Dune'))
        repo = BookRepository(db_session)

        assert [b.title for b in repo.get_by_title('Hobbit')] == ['The Hobbit', 'Hobbit Tales']
        assert repo.get_by_title('missing') == []
        assert len(repo.get_by_title('')) == 3

    def test_get_by_title_escapes_wildcards(self, db_session, seed):
        seed(Book(title='100% Python'), Book(title='1000 Pythons'))

        assert [b.title for b in BookRepository(db_session).get_by_title('100%')] == ['100% Python']

    def test_adjust_stock(self, db_session, book):
        repo = BookRepository(db_session)
        loaded = repo.get_by_id(book.id)

        assert repo.adjust_stock(book.id, -1) is True
        assert loaded.stock == 1
        assert repo.adjust_stock(book.id, 1) is True
        assert loaded.stock == 2

    def test_adjust_stock_never_goes_negative(self, db_session, book):
        repo = BookRepository(db_session)

        assert repo.adjust_stock(book.id, -2) is True
        assert repo.adjust_stock(book.id, -1) is False
        assert repo.get_by_id(book.id).stock == 0

    def test_adjust_stock_missing_book(self, db_session):
        assert BookRepository(db_session).adjust_stock(999, 1) is False

    def test_update_rejects_unknown_and_protected_fields(self, db_session, book):
        repo = BookRepository(db_session)
        loaded = repo.get_by_id(book.id)

        for updates in ({'pages': 10}, {'id': 7}, {'created_at': DEADLINE}):
            with pytest.raises(RepositoryError) as exc_info:
                repo.update(loaded, updates)
            assert exc_info.value.kind is RepositoryErrorKind.INVALID_FIELD

    def test_update_partial(self, db_session, book):
        repo = BookRepository(db_session)

        updated = repo.update(repo.get_by_id(book.id), {'content': 'revised'})

        assert updated.content == 'revised'
        assert updated.title == 'title1'

    def test_update_with_nothing_is_noop(self, db_session, book):
        repo = BookRepository(db_session)
        loaded = repo.get_by_id(book.id)

        assert repo.update(loaded, {}) is loaded

    def test_negative_stock_violates_check(self, db_session):
        with pytest.raises(RepositoryError) as exc_info:
            BookRepository(db_session).create(Book(title='broken', stock=-1))

        assert exc_info.value.kind is RepositoryErrorKind.UNKNOWN

    def test_soft_delete_hides_row(self, db_session, book):
        repo = BookRepository(db_session)

        repo.delete(repo.get_by_id(book.id))

        assert repo.get_by_title('title1') == []
        with pytest.raises(RepositoryError):
            repo.get_by_id(book.id)
        # The row itself is kept
        assert db_session.get(Book, book.id).deleted_at is not None

class TestUserRepository:

    def test_duplicate_email_is_unique_violation(self, db_session, user):
        with pytest.raises(RepositoryError) as exc_info:
            UserRepository(db_session).create(User(email='john@example.com', password='x'))

        assert exc_info.value.kind is RepositoryErrorKind.UNIQUE_CONSTRAINT

    def test_get_by_email(self, db_session, user):
        repo = UserRepository(db_session)

        assert repo.get_by_email('john@example.com').id == user.id
        with pytest.raises(RepositoryError) as exc_info:
            repo.get_by_email('nobody@example.com')
        assert exc_info.value.kind is RepositoryErrorKind.NOT_FOUND

    def test_get_by_name_matches_either_name(self, db_session, user, admin):
        repo = UserRepository(db_session)

        assert [u.id for u in repo.get_by_name('joh', 'zzz')] == [user.id]
        assert [u.id for u in repo.get_by_name('zzz', 'roe')] == [admin.id]
        assert repo.get_by_name('zzz', 'zzz') == []


class TestRentDetailsRepository:

    def _rent(self, user, book, status=RentStatus.RENTED):
        return RentDetails(
            user_id=user.id, book_id=book.id, status=status, return_deadline=DEADLINE,
        )

    def test_create_with_unknown_book_is_fk_violation(self, db_session, user):
        with pytest.raises(RepositoryError) as exc_info:
            RentDetailsRepository(db_session).create(
                RentDetails(user_id=user.id, book_id=999, return_deadline=DEADLINE)
            )

        assert exc_info.value.kind is RepositoryErrorKind.FOREIGN_KEY_CONSTRAINT

    def test_default_status_is_rented(self, db_session, user, book):
        rent = RentDetailsRepository(db_session).create(
            RentDetails(user_id=user.id, book_id=book.id, return_deadline=DEADLINE)
        )

        assert rent.status is RentStatus.RENTED
        assert rent.created_at is not None

    def test_get_by_id_loads_associations(self, db_session, user, book, make_rent):
        rent = make_rent(user, book)

        loaded = RentDetailsRepository(db_session).get_by_id(rent.id)

        assert loaded.book.title == 'title1'
        assert loaded.user.email == 'john@example.com'

    def test_update_associations_reloads_relationships(self, db_session, user, admin, book, seed, make_rent):
        other = seed(Book(title='other', stock=1))
        rent = make_rent(user, book)
        repo = RentDetailsRepository(db_session)
        loaded = repo.get_by_id(rent.id)

        repo.update_associations(loaded, {'book_id': other.id, 'user_id': admin.id})

        assert loaded.book.title == 'other'
        assert loaded.user.email == 'jane@example.com'

    @pytest.mark.parametrize("updates", [
        {'return_deadline': datetime(2000, 1, 1)},
        {'status': RentStatus.RETURNED},
        {'returned_at': datetime(2024, 3, 2)},
        {'return_deadline': datetime(2000, 1, 1), 'status': RentStatus.RETURNED},
    ])
    def test_lifecycle_fields_are_not_partially_updatable(self, db_session, user, book, make_rent, fetch_rent, updates):
        rent = make_rent(user, book)
        repo = RentDetailsRepository(db_session)
        loaded = repo.get_by_id(rent.id)

        with pytest.raises(RepositoryError) as exc_info:
            repo.update(loaded, updates)
        assert exc_info.value.kind is RepositoryErrorKind.INVALID_FIELD

        with pytest.raises(RepositoryError):
            repo.update_associations(loaded, dict(updates, book_id=book.id))

        db_session.commit()
        stored = fetch_rent(rent.id)
        assert stored.status is RentStatus.RENTED
        assert stored.return_deadline == rent.return_deadline
        assert stored.returned_at is None

    def test_queries_by_owner_and_status(self, db_session, user, admin, book, make_rent):
        first = make_rent(user, book)
        make_rent(admin, book, status=RentStatus.EXPIRED)
        repo = RentDetailsRepository(db_session)

        assert [r.id for r in repo.get_by_user(user.id)] == [first.id]
        assert len(repo.get_by_book(book.id)) == 2
        assert [r.user_id for r in repo.get_by_status(RentStatus.EXPIRED)] == [admin.id]

    def test_count_active(self, db_session, user, admin, book, make_rent):
        make_rent(user, book)
        make_rent(admin, book)
        make_rent(user, book, status=RentStatus.RETURNED)
        repo = RentDetailsRepository(db_session)

        assert repo.count_active() == 2
        assert repo.count_active(book_id=book.id) == 2
        assert repo.count_active(user_id=user.id) == 1
        assert repo.count_active(book_id=999) == 0

    def test_transition_status_is_guarded(self, db_session, user, book, make_rent):
        rent = make_rent(user, book)
        repo = RentDetailsRepository(db_session)
        returned_at = datetime(2024, 3, 5)

        assert repo.transition_status(rent.id, RentStatus.RENTED, RentStatus.RETURNED, returned_at) is True
        assert repo.transition_status(rent.id, RentStatus.RENTED, RentStatus.EXPIRED) is False

        loaded = repo.get_by_id(rent.id)
        assert loaded.status is RentStatus.RETURNED
        assert loaded.returned_at == returned_at

    def test_transition_status_rejects_illegal_transition(self, db_session, user, book, make_rent):
        rent = make_rent(user, book, status=RentStatus.EXPIRED)

        with pytest.raises(ValueError):
            RentDetailsRepository(db_session).transition_status(
                rent.id, RentStatus.EXPIRED, RentStatus.RENTED
            )

    def test_iter_active_skips_returned(self, db_session, user, book, make_rent):
        rented = make_rent(user, book)
        make_rent(user, book, status=RentStatus.RETURNED)
        expired = make_rent(user, book, status=RentStatus.EXPIRED)

        with RentDetailsRepository(db_session).iter_active(batch_size=10) as stream:
            items = list(stream)

        assert [(r.id, r.status) for r in items] == [
            (rented.id, RentStatus.RENTED),
            (expired.id, RentStatus.EXPIRED),
        ]
