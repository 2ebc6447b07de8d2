#!/usr/bin/env python

"""
    Loan lifecycle for Shelfmark: issuing, renewing, returning,
    sweeping overdue loans and recording fine payments.

    Each operation runs in one database transaction spanning the loan,
    the book's copy counters and the patron's records, so a failure at
    any step leaves nothing half applied.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import datetime
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import update
from sqlalchemy.sql import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from shelfmark.configs import LOAN_PERIOD_DAYS, MAX_RENEWALS, RENEWAL_PERIOD_DAYS
from shelfmark.core import ledger
from shelfmark.core.eligibility import check_eligibility, has_unpaid_fine
from shelfmark.core.fines import calculate_fine
from shelfmark.core.models import Loan, LoanStatus, Patron, Renewal, BorrowHistory
from shelfmark.core.utils import as_utc, utcnow
from shelfmark.core.exceptions import (
    CirculationError,
    DatabaseError,
    ConcurrentUpdateError,
    IneligibilityReason,
    IneligibleToBorrowError,
    InvalidDueDateError,
    InvalidPaymentError,
    LoanNotFoundError,
    PatronNotFoundError,
    NotAuthorizedError,
    AlreadyReturnedError,
    MaxRenewalsReachedError,
    CannotRenewOverdueError,
    FineAlreadyPaidError,
    PaymentExceedsOwedError,
)

logger = logging.getLogger(__name__)

OPEN_LOAN_INDEX = 'uq_loans_open_patron_book'


@dataclass
class SweepResult:
    transitioned: int = 0
    refreshed: int = 0
    total_fines: int = 0

    @property
    def count(self):
        """Loans whose status or fine changed."""
        return self.transitioned + self.refreshed


@contextmanager
def transaction(session: Session):
    """Commit on success; roll back and re-raise on any failure.

    Storage failures surface as DatabaseError, lost optimistic-version
    races as ConcurrentUpdateError.
    """
    try:
        yield session
        session.commit()
    except CirculationError:
        session.rollback()
        raise
    except StaleDataError as e:
        session.rollback()
        raise ConcurrentUpdateError(f"Loan was modified concurrently: {e}") from e
    except SQLAlchemyError as e:
        session.rollback()
        logger.exception("Circulation transaction failed")
        raise DatabaseError(f"Circulation transaction failed: {e}") from e
    except Exception:
        session.rollback()
        raise


def _require_patron(session: Session, patron_id: int) -> Patron:
    patron = session.get(Patron, patron_id)
    if patron is None:
        raise PatronNotFoundError(f"Patron {patron_id} not found.")
    return patron


def _lock_patron(session: Session, patron_id: int) -> Patron:
    # SQLite ignores FOR UPDATE; an UPDATE takes the write lock on every backend
    claimed = session.execute(update(Patron).where(
        Patron.id == patron_id
    ).values(updated_at=func.now()).execution_options(synchronize_session=False))
    if claimed.rowcount != 1:
        raise PatronNotFoundError(f"Patron {patron_id} not found.")
    return session.get(Patron, patron_id, populate_existing=True)


def require_staff(session: Session, staff_id: int, action: str) -> Patron:
    staff = _require_patron(session, staff_id)
    if not (staff.is_staff and staff.is_active):
        logger.warning(f"Patron {staff_id} refused: not allowed to {action}")
        raise NotAuthorizedError(f"Only librarians or admins may {action}.")
    return staff


def _lock_loan(session: Session, loan_id: int) -> Loan:
    loan = session.query(Loan).filter(
        Loan.id == loan_id
    ).with_for_update().populate_existing().one_or_none()
    if loan is None:
        raise LoanNotFoundError(f"Loan {loan_id} not found.")
    return loan


def _is_open_loan_conflict(error: IntegrityError) -> bool:
    message = str(error.orig)
    return OPEN_LOAN_INDEX in message or 'loans.patron_id, loans.book_id' in message


def create_loan(session: Session, patron_id: int, book_id: int,
                due_at: Optional[datetime.datetime] = None,
                issued_by_id: Optional[int] = None,
                notes: Optional[str] = None,
                now: Optional[datetime.datetime] = None) -> Loan:
    """
    Issue a copy of a book to a patron.

    Eligibility is checked again here, then a copy is reserved and the
    loan inserted in the same transaction.

    Raises:
        NotAuthorizedError: If the issuer is not active staff.
        InvalidDueDateError: If `due_at` is not in the future.
        IneligibleToBorrowError: If the patron may not borrow the book.
        NoCopiesAvailableError: If no copy is left on the shelf, including
            when the last one went to a concurrent borrower.
    """
    now = as_utc(now) if now else utcnow()
    due_at = as_utc(due_at) if due_at else now + datetime.timedelta(days=LOAN_PERIOD_DAYS)

    with transaction(session):
        require_staff(session, issued_by_id, "issue loans")
        if due_at <= now:
            raise InvalidDueDateError(f"Due date {due_at.isoformat()} is not in the future.")

        patron = _lock_patron(session, patron_id)
        eligibility = check_eligibility(session, patron_id, book_id, now=now)
        # an empty shelf is the ledger's call, so a lost race reads as NoCopiesAvailable
        if not eligibility and eligibility.reason != IneligibilityReason.NO_COPIES_AVAILABLE:
            logger.warning(f"Patron {patron_id} refused book {book_id}: {eligibility.reason.value}")
            raise IneligibleToBorrowError(eligibility.reason, eligibility.message)

        ledger.reserve_copy(session, book_id)
        loan = Loan(
            book_id=book_id,
            patron=patron,
            borrowed_at=now,
            due_at=due_at,
            status=LoanStatus.ACTIVE,
            issued_by_id=issued_by_id,
            notes=notes,
        )
        session.add(loan)
        try:
            session.flush()
        except IntegrityError as e:
            if not _is_open_loan_conflict(e):
                raise
            raise IneligibleToBorrowError(
                IneligibilityReason.DUPLICATE_ACTIVE_LOAN,
                "Patron has already borrowed this book.") from e

    logger.info(f"Loan {loan.id} issued: book {book_id} to patron {patron_id}, due {due_at.isoformat()}")
    return loan


def return_loan(session: Session, loan_id: int, returned_by_id: int,
                now: Optional[datetime.datetime] = None) -> Loan:
    """
    Close a loan: stamp the return, assess the final fine, put the copy
    back on the shelf and record the loan in the patron's history.
    """
    now = as_utc(now) if now else utcnow()

    with transaction(session):
        require_staff(session, returned_by_id, "accept returns")
        loan = _lock_loan(session, loan_id)
        if not loan.is_open:
            raise AlreadyReturnedError(f"Loan {loan_id} has already been {loan.status.value.lower()}.")

        loan.returned_at = now
        loan.status = LoanStatus.RETURNED
        loan.returned_to_id = returned_by_id
        loan.set_fine(calculate_fine(loan.due_at, now))

        ledger.release_copy(session, loan.book_id)

        session.add(BorrowHistory(
            patron_id=loan.patron_id,
            book_id=loan.book_id,
            loan_id=loan.id,
            borrowed_at=loan.borrowed_at,
            returned_at=now,
            fine=loan.fine_amount,
        ))
        if loan.fine_amount > 0:
            patron = loan.patron
            patron.fines_accrued = Patron.fines_accrued + loan.fine_amount

    logger.info(f"Loan {loan_id} returned, fine {loan.fine_amount}")
    return loan


def renew_loan(session: Session, loan_id: int, requested_by_id: int,
               now: Optional[datetime.datetime] = None) -> Loan:
    """
    Push a loan's due date back by RENEWAL_PERIOD_DAYS from its current
    due date.

    The borrower or any staff member may renew. Overdue loans, loans at
    MAX_RENEWALS and patrons with an unpaid fine anywhere in their history
    are refused.
    """
    now = as_utc(now) if now else utcnow()

    with transaction(session):
        requester = _require_patron(session, requested_by_id)
        loan = _lock_loan(session, loan_id)
        if not requester.is_active or not (requester.is_staff or requester.id == loan.patron_id):
            raise NotAuthorizedError("Not authorized to renew this book.")
        if not loan.is_open:
            raise AlreadyReturnedError(f"Loan {loan_id} has already been {loan.status.value.lower()}.")
        if loan.renewal_count >= MAX_RENEWALS:
            raise MaxRenewalsReachedError(f"Maximum renewal limit ({MAX_RENEWALS}) reached.")
        if loan.is_overdue(now):
            raise CannotRenewOverdueError("Cannot renew overdue book; return it or settle the fine first.")
        if has_unpaid_fine(session, loan.patron_id):
            raise IneligibleToBorrowError(
                IneligibilityReason.HAS_UNPAID_FINE,
                "Patron has unpaid fines. Please resolve before renewing.")

        new_due_date = loan.due_at + datetime.timedelta(days=RENEWAL_PERIOD_DAYS)
        loan.renewal_history.append(Renewal(
            renewal_date=now,
            new_due_date=new_due_date,
            renewed_by_id=requester.id,
        ))
        loan.due_at = new_due_date
        loan.renewal_count += 1

    logger.info(f"Loan {loan_id} renewed ({loan.renewal_count}/{MAX_RENEWALS}), due {new_due_date.isoformat()}")
    return loan


def sweep_overdue(session: Session, now: Optional[datetime.datetime] = None) -> SweepResult:
    """
    Mark every open loan past its due date as Overdue and bring its fine
    up to date. Running it again for the same `now` changes nothing.
    """
    now = as_utc(now) if now else utcnow()
    result = SweepResult()

    with transaction(session):
        loans = session.query(Loan).filter(
            Loan.is_open,
            Loan.due_at < now,
        ).with_for_update().populate_existing().all()
        for loan in loans:
            changed = False
            if loan.status == LoanStatus.ACTIVE:
                loan.status = LoanStatus.OVERDUE
                result.transitioned += 1
                changed = True
            fine = calculate_fine(loan.due_at, now)
            if fine != loan.fine_amount:
                loan.set_fine(fine)
                if not changed:
                    result.refreshed += 1
            result.total_fines += fine

    logger.info(
        f"Overdue sweep at {now.isoformat()}: {result.transitioned} newly overdue, "
        f"{result.refreshed} fines refreshed, {result.total_fines} total")
    return result


def pay_fine(session: Session, loan_id: int, amount: int, received_by_id: int,
             now: Optional[datetime.datetime] = None) -> Loan:
    """Record a manual fine payment against a loan."""
    now = as_utc(now) if now else utcnow()
    if amount is None or amount <= 0:
        raise InvalidPaymentError()

    with transaction(session):
        require_staff(session, received_by_id, "record fine payments")
        loan = _lock_loan(session, loan_id)
        if loan.fine_is_paid:
            raise FineAlreadyPaidError()
        owed = loan.fine_amount - loan.fine_paid_amount
        if amount > owed:
            raise PaymentExceedsOwedError(
                f"Payment of {amount} exceeds the {owed} owed on loan {loan_id}.")

        loan.fine_paid_amount += amount
        loan.fine_paid_at = now
        if loan.fine_paid_amount >= loan.fine_amount:
            loan.fine_is_paid = True

    logger.info(f"Loan {loan_id} fine payment {amount} recorded, paid={loan.fine_is_paid}")
    return loan
