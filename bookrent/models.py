from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import relationship

from bookrent.database import Base
from bookrent.domain.value_objects import RentStatus, UserRole
from bookrent.utils.clock import utcnow


class Book(Base):
    """
    A catalog title with a count of copies available for rent.

    ``stock`` never goes below zero; the rental service moves it by one
    per rent or return.
    """
    __tablename__ = 'books'

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default='')
    stock = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)  # Soft delete marker

    rents = relationship("RentDetails", back_populates="book")

    __table_args__ = (
        CheckConstraint("stock >= 0", name='ck_books_stock_non_negative'),
        Index('idx_books_title', 'title'),
    )

    def __repr__(self):
        return f"<Book id={self.id} title={self.title!r} stock={self.stock}>"


class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, autoincrement=True)
    firstname = Column(String, nullable=False, default='')
    lastname = Column(String, nullable=False, default='')
    email = Column(String, nullable=False, unique=True)
    password = Column(String, nullable=False)
    role = Column(SAEnum(UserRole, native_enum=False, length=16), nullable=False, default=UserRole.CUSTOMER)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
    deleted_at = Column(DateTime, nullable=True)  # Soft delete marker

    rents = relationship("RentDetails", back_populates="user")

    def __repr__(self):
        return f"<User id={self.id} email={self.email!r} role={self.role}>"


class RentDetails(Base):
    """
    One loan of one copy of a book to one user.

    Status lifecycle:
    - RENTED: Created by a rent, book copy is out
    - RETURNED: Book brought back, returned_at stamped (terminal)
    - EXPIRED: Deadline passed while still RENTED (terminal)
    """
    __tablename__ = 'rent_details'

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    book_id = Column(Integer, ForeignKey('books.id'), nullable=False)
    status = Column(
        SAEnum(RentStatus, native_enum=False, length=16),
        nullable=False,
        default=RentStatus.RENTED,
    )
    returned_at = Column(DateTime, nullable=True)  # Only set on RENTED -> RETURNED
    return_deadline = Column(DateTime, nullable=False)  # created_at + loan period, never changed
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="rents")
    book = relationship("Book", back_populates="rents")

    __table_args__ = (
        Index('idx_rent_details_status', 'status'),
        Index('idx_rent_details_user', 'user_id'),
        Index('idx_rent_details_book', 'book_id'),
    )

    def __repr__(self):
        return f"<RentDetails id={self.id} book={self.book_id} user={self.user_id} status={self.status}>"
