#!/usr/bin/env python

"""
    Circulation models for Shelfmark,
    including the Book, Patron, Loan, Renewal and BorrowHistory tables.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from sqlalchemy import (
    Column, String, Boolean, Integer, ForeignKey, Index, CheckConstraint,
    Enum as SQLAlchemyEnum, text
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from sqlalchemy.ext.hybrid import hybrid_property
from shelfmark.core.db import Base
from shelfmark.core.utils import UTCDateTime, as_utc, utcnow
import enum


class RoleEnum(enum.Enum):
    STUDENT = "student"
    LIBRARIAN = "librarian"
    ADMIN = "admin"


class LoanStatus(enum.Enum):
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    RETURNED = "Returned"
    LOST = "Lost"


OPEN_STATUSES = (LoanStatus.ACTIVE, LoanStatus.OVERDUE)
STAFF_ROLES = (RoleEnum.LIBRARIAN, RoleEnum.ADMIN)


class Book(Base):
    __tablename__ = 'books'
    __table_args__ = (
        CheckConstraint('total_copies >= 1', name='ck_books_total_positive'),
        CheckConstraint('available_copies >= 0', name='ck_books_available_nonnegative'),
        CheckConstraint('available_copies <= total_copies', name='ck_books_available_within_total'),
    )

    id = Column(Integer, primary_key=True)
    isbn = Column(String(13), unique=True, nullable=False)
    title = Column(String(200), nullable=False)
    author = Column(String(100), nullable=False)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(UTCDateTime, default=func.now())
    updated_at = Column(UTCDateTime, default=func.now(), onupdate=func.now())

    loans = relationship('Loan', back_populates='book')

    @hybrid_property
    def borrowed_copies(self):
        return self.total_copies - self.available_copies

    @property
    def is_available(self):
        return self.is_active and self.available_copies > 0

    @classmethod
    def exists(cls, db, isbn):
        return db.query(Book).filter(Book.isbn == isbn).first()

    def __repr__(self):
        return f"<Book {self.isbn} {self.available_copies}/{self.total_copies}>"


class Patron(Base):
    __tablename__ = 'patrons'

    id = Column(Integer, primary_key=True)
    name = Column(String(50), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    role = Column(SQLAlchemyEnum(RoleEnum, name='patron_role'), default=RoleEnum.STUDENT, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    fines_accrued = Column(Integer, default=0, nullable=False)
    created_at = Column(UTCDateTime, default=func.now())
    updated_at = Column(UTCDateTime, default=func.now(), onupdate=func.now())

    loans = relationship(
        'Loan', back_populates='patron',
        foreign_keys='Loan.patron_id', order_by='Loan.id')
    history = relationship(
        'BorrowHistory', back_populates='patron', order_by='BorrowHistory.id')

    @property
    def is_staff(self):
        return self.role in STAFF_ROLES

    @property
    def active_loan_ids(self):
        """Ids of loans the patron still holds (Active or Overdue)."""
        return [loan.id for loan in self.loans if loan.is_open]

    @property
    def outstanding_fine_total(self):
        return sum(loan.fine_outstanding for loan in self.loans)

    @classmethod
    def exists(cls, db, email):
        return db.query(Patron).filter(Patron.email == email.strip().lower()).first()

    def __repr__(self):
        return f"<Patron {self.id} {self.role.value}>"


class Loan(Base):
    __tablename__ = 'loans'
    __table_args__ = (
        # One open loan per patron and book
        Index(
            'uq_loans_open_patron_book', 'patron_id', 'book_id', unique=True,
            sqlite_where=text("status IN ('ACTIVE', 'OVERDUE')"),
            postgresql_where=text("status IN ('ACTIVE', 'OVERDUE')"),
        ),
        Index('ix_loans_status_due_at', 'status', 'due_at'),
        CheckConstraint('fine_amount >= 0', name='ck_loans_fine_nonnegative'),
    )

    id = Column(Integer, primary_key=True)
    book_id = Column(Integer, ForeignKey('books.id'), nullable=False, index=True)
    patron_id = Column(Integer, ForeignKey('patrons.id'), nullable=False, index=True)
    borrowed_at = Column(UTCDateTime, nullable=False)
    due_at = Column(UTCDateTime, nullable=False)
    returned_at = Column(UTCDateTime, nullable=True)
    status = Column(SQLAlchemyEnum(LoanStatus, name='loan_status'), default=LoanStatus.ACTIVE, nullable=False)
    renewal_count = Column(Integer, default=0, nullable=False)
    fine_amount = Column(Integer, default=0, nullable=False)
    fine_is_paid = Column(Boolean, default=False, nullable=False)
    fine_paid_amount = Column(Integer, default=0, nullable=False)
    fine_paid_at = Column(UTCDateTime, nullable=True)
    notes = Column(String(500))
    issued_by_id = Column(Integer, ForeignKey('patrons.id'), nullable=False)
    returned_to_id = Column(Integer, ForeignKey('patrons.id'), nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(UTCDateTime, default=func.now())
    updated_at = Column(UTCDateTime, default=func.now(), onupdate=func.now())

    __mapper_args__ = {'version_id_col': version}

    book = relationship('Book', back_populates='loans')
    patron = relationship('Patron', back_populates='loans', foreign_keys=[patron_id])
    issued_by = relationship('Patron', foreign_keys=[issued_by_id])
    returned_to = relationship('Patron', foreign_keys=[returned_to_id])
    renewal_history = relationship(
        'Renewal', back_populates='loan', order_by='Renewal.id',
        cascade='all, delete-orphan')

    @hybrid_property
    def is_open(self):
        return self.status in OPEN_STATUSES

    @is_open.expression
    def is_open(cls):
        return cls.status.in_(OPEN_STATUSES)

    @property
    def fine(self):
        return {
            "amount": self.fine_amount,
            "is_paid": self.fine_is_paid,
            "paid_amount": self.fine_paid_amount,
            "paid_at": self.fine_paid_at,
        }

    @property
    def fine_outstanding(self):
        if self.fine_is_paid:
            return 0
        return max(0, self.fine_amount - self.fine_paid_amount)

    @property
    def has_unpaid_fine(self):
        return self.fine_amount > 0 and not self.fine_is_paid

    def is_past_due(self, now=None):
        return self.returned_at is None and as_utc(self.due_at) < as_utc(now or utcnow())

    def is_overdue(self, now=None):
        return self.status == LoanStatus.OVERDUE or (
            self.status == LoanStatus.ACTIVE and self.is_past_due(now))

    def set_fine(self, amount):
        """Set the assessed fine and re-derive whether it is settled."""
        self.fine_amount = amount
        self.fine_is_paid = amount > 0 and self.fine_paid_amount >= amount

    def __repr__(self):
        return f"<Loan {self.id} {self.status.value} book={self.book_id} patron={self.patron_id}>"


class Renewal(Base):
    __tablename__ = 'renewals'

    id = Column(Integer, primary_key=True)
    loan_id = Column(Integer, ForeignKey('loans.id'), nullable=False, index=True)
    renewal_date = Column(UTCDateTime, nullable=False)
    new_due_date = Column(UTCDateTime, nullable=False)
    renewed_by_id = Column(Integer, ForeignKey('patrons.id'), nullable=False)

    loan = relationship('Loan', back_populates='renewal_history')


class BorrowHistory(Base):
    __tablename__ = 'borrow_history'

    id = Column(Integer, primary_key=True)
    patron_id = Column(Integer, ForeignKey('patrons.id'), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey('books.id'), nullable=False)
    loan_id = Column(Integer, ForeignKey('loans.id'), nullable=False, unique=True)
    borrowed_at = Column(UTCDateTime, nullable=False)
    returned_at = Column(UTCDateTime, nullable=False)
    fine = Column(Integer, default=0, nullable=False)

    patron = relationship('Patron', back_populates='history')
