"""
    Inventory ledger: the only writer of a book's copy counters.

    Every mutation is a single conditional UPDATE so the database, not the
    caller, decides whether a copy is still there. The ledger never
    commits; callers own the transaction.
"""

import logging
from sqlalchemy import update
from sqlalchemy.orm import Session
from shelfmark.core.models import Book
from shelfmark.core.exceptions import (
    BookNotFoundError,
    NoCopiesAvailableError,
    InvalidCopyAdjustmentError,
    LedgerInconsistencyError,
)

logger = logging.getLogger(__name__)


def _require_book(session: Session, book_id: int) -> Book:
    book = session.get(Book, book_id)
    if book is None:
        raise BookNotFoundError(f"Book {book_id} not found.")
    return book


def _apply(session: Session, statement) -> bool:
    result = session.execute(statement.execution_options(synchronize_session=False))
    return result.rowcount == 1


def _refresh(session: Session, book_id: int):
    book = session.get(Book, book_id)
    if book is not None:
        session.refresh(book)
    return book


def reserve_copy(session: Session, book_id: int) -> Book:
    """Take one copy off the shelf, or raise NoCopiesAvailableError."""
    taken = _apply(session, update(Book).where(
        Book.id == book_id,
        Book.available_copies > 0,
    ).values(available_copies=Book.available_copies - 1))
    if not taken:
        _require_book(session, book_id)
        logger.info(f"No copies left to reserve for book {book_id}")
        raise NoCopiesAvailableError("No copies available for borrowing.")
    return _refresh(session, book_id)


def release_copy(session: Session, book_id: int) -> Book:
    """Put one copy back on the shelf.

    Callers release at most once per loan; a release that would push
    available copies past the total means the counters are already wrong.
    """
    released = _apply(session, update(Book).where(
        Book.id == book_id,
        Book.available_copies < Book.total_copies,
    ).values(available_copies=Book.available_copies + 1))
    if not released:
        _require_book(session, book_id)
        raise LedgerInconsistencyError(
            f"Book {book_id} has no copies on loan to release.")
    return _refresh(session, book_id)


def adjust_total(session: Session, book_id: int, new_total: int) -> Book:
    """
    Change a book's total copies, keeping the number on loan unchanged.

    available = new_total - (total - available); the change is rejected
    without touching the row when that would go negative.
    """
    if new_total < 1:
        raise InvalidCopyAdjustmentError("A book must have at least 1 copy.", reason="BelowMinimum")
    adjusted = _apply(session, update(Book).where(
        Book.id == book_id,
        Book.total_copies - Book.available_copies <= new_total,
    ).values(
        available_copies=new_total - (Book.total_copies - Book.available_copies),
        total_copies=new_total,
    ))
    if not adjusted:
        book = _require_book(session, book_id)
        session.refresh(book)
        raise InvalidCopyAdjustmentError(
            f"Cannot set total copies to {new_total}: "
            f"{book.borrowed_copies} copies are currently on loan.")
    book = _refresh(session, book_id)
    logger.info(f"Book {book_id} total copies set to {new_total} ({book.available_copies} available)")
    return book
