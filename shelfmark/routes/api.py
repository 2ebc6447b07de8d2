#!/usr/bin/env python

"""
    API routes for Shelfmark,
    mapping circulation requests onto the engine.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import logging
from typing import List, Optional, Generator
from fastapi import (
    APIRouter,
    Depends,
    Request,
    status,
)
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from shelfmark.core import db
from shelfmark.core.api import CirculationAPI
from shelfmark.core.models import LoanStatus
from shelfmark.core.exceptions import (
    CirculationError,
    DatabaseError,
    LedgerInconsistencyError,
    NotFoundError,
    NotAuthorizedError,
    NoCopiesAvailableError,
    ConcurrentUpdateError,
    BookExistsError,
    PatronExistsError,
)
from shelfmark.schemas import loan as loan_schemas
from shelfmark.schemas import book as book_schemas
from shelfmark.schemas import patron as patron_schemas
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
from shelfmark.routes.schemas import (
    ReturnRequest,
    RenewRequest,
    PaymentRequest,
    CopiesRequest,
    ActiveRequest,
    LoanStatusFilter,
)

STATUS_CODES = [
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (NotAuthorizedError, status.HTTP_403_FORBIDDEN),
    (NoCopiesAvailableError, status.HTTP_409_CONFLICT),
    (ConcurrentUpdateError, status.HTTP_409_CONFLICT),
    (BookExistsError, status.HTTP_409_CONFLICT),
    (PatronExistsError, status.HTTP_409_CONFLICT),
]

logger = logging.getLogger(__name__)

router = APIRouter()


def get_session() -> Generator[Session, None, None]:
    try:
        yield db
    finally:
        db.remove()


def circulation_error_response(request: Request, exc: CirculationError) -> JSONResponse:
    code = next((code for kind, code in STATUS_CODES if isinstance(exc, kind)),
                status.HTTP_400_BAD_REQUEST)
    return JSONResponse(status_code=code, content=exc.to_dict())


def database_error_response(request: Request, exc: DatabaseError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "DatabaseError", "message": "Storage unavailable; no changes were made."},
    )


def ledger_error_response(request: Request, exc: LedgerInconsistencyError) -> JSONResponse:
    logger.error(f"Ledger inconsistency on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "LedgerInconsistency", "message": "Copy counts disagree with open loans; no changes were made."},
    )


@router.post("/loans", status_code=status.HTTP_201_CREATED, response_model=loan_schemas.Loan)
def create_loan(command: CreateLoanCommand, session: Session = Depends(get_session)):
    return CirculationAPI.create_loan(command, session=session)


@router.get("/loans", response_model=List[loan_schemas.Loan])
def get_loans(status: Optional[LoanStatusFilter] = None, patron_id: Optional[int] = None,
              offset: Optional[int] = None, limit: Optional[int] = None,
              session: Session = Depends(get_session)):
    return CirculationAPI.get_loans(
        status=LoanStatus(status.value) if status else None,
        patron_id=patron_id, offset=offset, limit=limit, session=session)


@router.get("/loans/overdue", response_model=List[loan_schemas.Loan])
def get_overdue_loans(session: Session = Depends(get_session)):
    return CirculationAPI.get_overdue_loans(session=session)


@router.post("/loans/sweep", response_model=loan_schemas.Sweep)
def sweep_overdue(command: Optional[SweepOverdueCommand] = None, session: Session = Depends(get_session)):
    return CirculationAPI.sweep_overdue(command, session=session)


@router.get("/loans/{loan_id}", response_model=loan_schemas.Loan)
def get_loan(loan_id: int, session: Session = Depends(get_session)):
    return CirculationAPI.get_loan(loan_id, session=session)


@router.post("/loans/{loan_id}/return", response_model=loan_schemas.Loan)
def return_loan(loan_id: int, body: ReturnRequest, session: Session = Depends(get_session)):
    command = ReturnLoanCommand(loan_id=loan_id, returned_by_id=body.returned_by_id)
    return CirculationAPI.return_loan(command, session=session)


@router.post("/loans/{loan_id}/renew", response_model=loan_schemas.Loan)
def renew_loan(loan_id: int, body: RenewRequest, session: Session = Depends(get_session)):
    command = RenewLoanCommand(loan_id=loan_id, requested_by_id=body.requested_by_id)
    return CirculationAPI.renew_loan(command, session=session)


@router.post("/loans/{loan_id}/pay-fine", response_model=loan_schemas.Loan)
def pay_fine(loan_id: int, body: PaymentRequest, session: Session = Depends(get_session)):
    command = PayFineCommand(loan_id=loan_id, amount=body.amount, received_by_id=body.received_by_id)
    return CirculationAPI.pay_fine(command, session=session)


@router.post("/books", status_code=status.HTTP_201_CREATED, response_model=book_schemas.Book)
def add_book(command: AddBookCommand, session: Session = Depends(get_session)):
    return CirculationAPI.add_book(command, session=session)


@router.get("/books/{book_id}", response_model=book_schemas.Book)
def get_book(book_id: int, session: Session = Depends(get_session)):
    return CirculationAPI.get_book(book_id, session=session)


@router.put("/books/{book_id}/copies", response_model=book_schemas.Book)
def adjust_copies(book_id: int, body: CopiesRequest, session: Session = Depends(get_session)):
    command = AdjustCopiesCommand(
        book_id=book_id, total_copies=body.total_copies, changed_by_id=body.changed_by_id)
    return CirculationAPI.adjust_copies(command, session=session)


@router.put("/books/{book_id}/active", response_model=book_schemas.Book)
def set_book_active(book_id: int, body: ActiveRequest, session: Session = Depends(get_session)):
    command = SetBookActiveCommand(
        book_id=book_id, is_active=body.is_active, changed_by_id=body.changed_by_id)
    return CirculationAPI.set_book_active(command, session=session)


@router.post("/patrons", status_code=status.HTTP_201_CREATED, response_model=patron_schemas.Patron)
def register_patron(command: RegisterPatronCommand, session: Session = Depends(get_session)):
    return CirculationAPI.register_patron(command, session=session)


@router.get("/patrons/{patron_id}", response_model=patron_schemas.Patron)
def get_patron(patron_id: int, session: Session = Depends(get_session)):
    return CirculationAPI.get_patron(patron_id, session=session)


@router.get("/patrons/{patron_id}/loans", response_model=List[loan_schemas.Loan])
def get_patron_loans(patron_id: int, session: Session = Depends(get_session)):
    return CirculationAPI.get_patron_loans(patron_id, session=session)


@router.get("/patrons/{patron_id}/eligibility", response_model=patron_schemas.Eligibility)
def get_eligibility(patron_id: int, book_id: int, session: Session = Depends(get_session)):
    eligibility = CirculationAPI.check_eligibility(patron_id, book_id, session=session)
    return {
        "eligible": eligibility.eligible,
        "reason": eligibility.reason.value if eligibility.reason else None,
        "message": eligibility.message,
    }
