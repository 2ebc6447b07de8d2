"""
    Borrowing eligibility rules.

    `check_eligibility` only reads. The answer can be stale by the time a
    copy is reserved, so `create_loan` evaluates it again inside its own
    transaction.
"""

import datetime
from typing import Optional

from sqlalchemy import or_, and_
from sqlalchemy.orm import Session
from shelfmark.configs import LOAN_LIMIT
from shelfmark.core.models import Book, Patron, Loan, LoanStatus
from shelfmark.core.exceptions import (
    IneligibilityReason,
    BookNotFoundError,
    PatronNotFoundError,
)
from shelfmark.core.utils import utcnow


class Eligibility:

    MESSAGES = {
        IneligibilityReason.ACCOUNT_INACTIVE: "Patron account is inactive.",
        IneligibilityReason.DUPLICATE_ACTIVE_LOAN: "Patron has already borrowed this book.",
        IneligibilityReason.BORROW_LIMIT_REACHED: "Patron has reached the maximum borrowing limit ({limit} books).",
        IneligibilityReason.HAS_OVERDUE_LOAN: "Patron has overdue books. Please resolve before borrowing.",
        IneligibilityReason.HAS_UNPAID_FINE: "Patron has unpaid fines. Please resolve before borrowing.",
        IneligibilityReason.BOOK_INACTIVE: "Book is not available for borrowing.",
        IneligibilityReason.NO_COPIES_AVAILABLE: "No copies available for borrowing.",
    }

    def __init__(self, reason: Optional[IneligibilityReason] = None, message: Optional[str] = None):
        self.reason = reason
        self.message = message

    @property
    def eligible(self):
        return self.reason is None

    def __bool__(self):
        return self.eligible

    def __repr__(self):
        return "<Eligible>" if self.eligible else f"<Ineligible {self.reason.value}>"

    @classmethod
    def ok(cls):
        return cls()

    @classmethod
    def denied(cls, reason, **kwargs):
        return cls(reason, cls.MESSAGES[reason].format(**kwargs))


def open_loans_query(session: Session, patron_id: int):
    return session.query(Loan).filter(Loan.patron_id == patron_id, Loan.is_open)


def has_overdue_loan(session: Session, patron_id: int, now: datetime.datetime) -> bool:
    return session.query(open_loans_query(session, patron_id).filter(or_(
        Loan.status == LoanStatus.OVERDUE,
        and_(Loan.status == LoanStatus.ACTIVE, Loan.due_at < now),
    )).exists()).scalar()


def has_unpaid_fine(session: Session, patron_id: int) -> bool:
    return session.query(session.query(Loan).filter(
        Loan.patron_id == patron_id,
        Loan.fine_amount > 0,
        Loan.fine_is_paid.is_(False),
    ).exists()).scalar()


def check_eligibility(session: Session, patron_id: int, book_id: int,
                      now: Optional[datetime.datetime] = None,
                      limit: Optional[int] = None) -> Eligibility:
    """
    Decide whether a patron may borrow a book right now.

    Rules are applied in a fixed order and the first one that fails is
    reported: inactive account, duplicate open loan, borrow limit, overdue
    loan, unpaid fine, then inactive book or empty shelf.

    Raises:
        PatronNotFoundError: If the patron does not exist.
        BookNotFoundError: If the book does not exist.
    """
    now = now or utcnow()
    limit = LOAN_LIMIT if limit is None else limit

    patron = session.get(Patron, patron_id)
    if patron is None:
        raise PatronNotFoundError(f"Patron {patron_id} not found.")
    book = session.get(Book, book_id)
    if book is None:
        raise BookNotFoundError(f"Book {book_id} not found.")

    if not patron.is_active:
        return Eligibility.denied(IneligibilityReason.ACCOUNT_INACTIVE)

    open_loans = open_loans_query(session, patron_id)
    if open_loans.filter(Loan.book_id == book_id).first():
        return Eligibility.denied(IneligibilityReason.DUPLICATE_ACTIVE_LOAN)

    if open_loans.count() >= limit:
        return Eligibility.denied(IneligibilityReason.BORROW_LIMIT_REACHED, limit=limit)

    if has_overdue_loan(session, patron_id, now):
        return Eligibility.denied(IneligibilityReason.HAS_OVERDUE_LOAN)

    if has_unpaid_fine(session, patron_id):
        return Eligibility.denied(IneligibilityReason.HAS_UNPAID_FINE)

    if not book.is_active:
        return Eligibility.denied(IneligibilityReason.BOOK_INACTIVE)

    if book.available_copies <= 0:
        return Eligibility.denied(IneligibilityReason.NO_COPIES_AVAILABLE)

    return Eligibility.ok()
