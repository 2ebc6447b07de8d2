import logging
from typing import Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shelfmark.core import db, circulation, ledger
from shelfmark.core.eligibility import Eligibility, check_eligibility
from shelfmark.core.models import Book, Patron, Loan, LoanStatus
from shelfmark.core.utils import utcnow
from shelfmark.core.exceptions import (
    BookExistsError,
    BookNotFoundError,
    BookOnLoanError,
    LoanNotFoundError,
    PatronExistsError,
    PatronNotFoundError,
)
from shelfmark.schemas.commands import (
    CreateLoanCommand,
    ReturnLoanCommand,
    RenewLoanCommand,
    PayFineCommand,
    SweepOverdueCommand,
    AddBookCommand,
    AdjustCopiesCommand,
    SetBookActiveCommand,
    RegisterPatronCommand,
)

logger = logging.getLogger(__name__)


class CirculationAPI:
    """Entry points for the HTTP layer and scripts.

    Every method takes a validated command (or plain ids for reads) and an
    optional session; without one the thread's scoped session is used.
    """

    DEFAULT_LIMIT = 50
    MAX_LIMIT = 100

    @classmethod
    def _session(cls, session: Optional[Session]) -> Session:
        return session if session is not None else db

    @classmethod
    def create_loan(cls, command: CreateLoanCommand, session: Session = None) -> Loan:
        return circulation.create_loan(
            cls._session(session),
            patron_id=command.patron_id,
            book_id=command.book_id,
            due_at=command.due_at,
            issued_by_id=command.issued_by_id,
            notes=command.notes,
        )

    @classmethod
    def return_loan(cls, command: ReturnLoanCommand, session: Session = None) -> Loan:
        return circulation.return_loan(
            cls._session(session), command.loan_id, command.returned_by_id)

    @classmethod
    def renew_loan(cls, command: RenewLoanCommand, session: Session = None) -> Loan:
        return circulation.renew_loan(
            cls._session(session), command.loan_id, command.requested_by_id)

    @classmethod
    def pay_fine(cls, command: PayFineCommand, session: Session = None) -> Loan:
        return circulation.pay_fine(
            cls._session(session), command.loan_id, command.amount, command.received_by_id)

    @classmethod
    def sweep_overdue(cls, command: Optional[SweepOverdueCommand] = None, session: Session = None):
        now = command.now if command else None
        return circulation.sweep_overdue(cls._session(session), now=now)

    @classmethod
    def check_eligibility(cls, patron_id: int, book_id: int, session: Session = None) -> Eligibility:
        return check_eligibility(cls._session(session), patron_id, book_id)

    @classmethod
    def add_book(cls, command: AddBookCommand, session: Session = None) -> Book:
        """Adds a book to the catalog with every copy on the shelf."""
        session = cls._session(session)
        with circulation.transaction(session):
            circulation.require_staff(session, command.changed_by_id, "add books")
            if Book.exists(session, command.isbn):
                raise BookExistsError(f"Book with ISBN '{command.isbn}' already exists.")
            book = Book(
                isbn=command.isbn,
                title=command.title,
                author=command.author,
                total_copies=command.total_copies,
                available_copies=command.total_copies,
            )
            session.add(book)
            try:
                session.flush()
            except IntegrityError as e:
                raise BookExistsError(f"Book with ISBN '{command.isbn}' already exists.") from e
        logger.info(f"Book {book.id} added: {command.isbn} x{command.total_copies}")
        return book

    @classmethod
    def adjust_copies(cls, command: AdjustCopiesCommand, session: Session = None) -> Book:
        session = cls._session(session)
        with circulation.transaction(session):
            circulation.require_staff(session, command.changed_by_id, "change copy counts")
            book = ledger.adjust_total(session, command.book_id, command.total_copies)
        return book

    @classmethod
    def set_book_active(cls, command: SetBookActiveCommand, session: Session = None) -> Book:
        """Returns a book to circulation or withdraws it.

        A book can only be withdrawn with every copy on the shelf; the check
        and the write are one conditional UPDATE.
        """
        session = cls._session(session)
        with circulation.transaction(session):
            circulation.require_staff(session, command.changed_by_id, "change book status")
            book = cls.get_book(command.book_id, session=session)
            if command.is_active:
                book.is_active = True
            else:
                withdrawn = session.execute(update(Book).where(
                    Book.id == book.id,
                    Book.available_copies == Book.total_copies,
                ).values(is_active=False).execution_options(synchronize_session=False))
                session.refresh(book)
                if withdrawn.rowcount != 1:
                    raise BookOnLoanError(
                        f"Cannot withdraw book {book.id}: {book.borrowed_copies} copies are on loan.")
        logger.info(f"Book {book.id} active={book.is_active}")
        return book

    @classmethod
    def register_patron(cls, command: RegisterPatronCommand, session: Session = None) -> Patron:
        session = cls._session(session)
        email = command.email.strip().lower()
        with circulation.transaction(session):
            if Patron.exists(session, email):
                raise PatronExistsError(f"Patron '{email}' already exists.")
            patron = Patron(name=command.name, email=email, role=command.role)
            session.add(patron)
            try:
                session.flush()
            except IntegrityError as e:
                raise PatronExistsError(f"Patron '{email}' already exists.") from e
        return patron

    @classmethod
    def get_book(cls, book_id: int, session: Session = None) -> Book:
        if book := cls._session(session).get(Book, book_id):
            return book
        raise BookNotFoundError(f"Book {book_id} not found.")

    @classmethod
    def get_patron(cls, patron_id: int, session: Session = None) -> Patron:
        if patron := cls._session(session).get(Patron, patron_id):
            return patron
        raise PatronNotFoundError(f"Patron {patron_id} not found.")

    @classmethod
    def get_loan(cls, loan_id: int, session: Session = None) -> Loan:
        if loan := cls._session(session).get(Loan, loan_id):
            return loan
        raise LoanNotFoundError(f"Loan {loan_id} not found.")

    @classmethod
    def get_loans(cls, status: Optional[LoanStatus] = None, patron_id: Optional[int] = None,
                  offset: Optional[int] = None, limit: Optional[int] = None,
                  session: Session = None):
        """Loans, most recently borrowed first, optionally filtered."""
        limit = min(limit or cls.DEFAULT_LIMIT, cls.MAX_LIMIT)
        query = cls._session(session).query(Loan)
        if status:
            query = query.filter(Loan.status == status)
        if patron_id:
            query = query.filter(Loan.patron_id == patron_id)
        return query.order_by(Loan.borrowed_at.desc(), Loan.id.desc()).offset(offset).limit(limit).all()

    @classmethod
    def get_patron_loans(cls, patron_id: int, session: Session = None):
        """Returns the patron's open (Active or Overdue) loans."""
        patron = cls.get_patron(patron_id, session=session)
        return cls._session(session).query(Loan).filter(
            Loan.patron_id == patron.id,
            Loan.is_open,
        ).order_by(Loan.borrowed_at.desc()).all()

    @classmethod
    def get_overdue_loans(cls, now=None, session: Session = None):
        """Open loans past their due date, oldest due date first.

        This is a read; statuses and fines change only through the sweep.
        """
        return cls._session(session).query(Loan).filter(
            Loan.is_open,
            Loan.due_at < (now or utcnow()),
        ).order_by(Loan.due_at).all()
