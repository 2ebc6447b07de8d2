import enum


class IneligibilityReason(enum.Enum):
    ACCOUNT_INACTIVE = "AccountInactive"
    DUPLICATE_ACTIVE_LOAN = "DuplicateActiveLoan"
    BORROW_LIMIT_REACHED = "BorrowLimitReached"
    HAS_OVERDUE_LOAN = "HasOverdueLoan"
    HAS_UNPAID_FINE = "HasUnpaidFine"
    BOOK_INACTIVE = "BookInactive"
    NO_COPIES_AVAILABLE = "NoCopiesAvailable"


class ShelfmarkError(Exception): pass

class DatabaseError(ShelfmarkError): pass

class LedgerInconsistencyError(ShelfmarkError): pass


class CirculationError(ShelfmarkError):
    """Expected, recoverable business error.

    `code` is stable and safe to hand to API clients so they can render
    a specific message.
    """
    code = "CirculationError"

    def __init__(self, message=None):
        super().__init__(message or self.__doc__)
        self.message = message or self.__doc__

    def to_dict(self):
        return {"error": self.code, "message": self.message}


class NotFoundError(CirculationError):
    """Record not found."""
    code = "NotFound"

class LoanNotFoundError(NotFoundError):
    """Loan not found."""
    code = "LoanNotFound"

class BookNotFoundError(NotFoundError):
    """Book not found."""
    code = "BookNotFound"

class PatronNotFoundError(NotFoundError):
    """Patron not found."""
    code = "PatronNotFound"

class BookExistsError(CirculationError):
    """A book with this ISBN already exists."""
    code = "BookExists"

class PatronExistsError(CirculationError):
    """A patron with this email already exists."""
    code = "PatronExists"

class NotAuthorizedError(CirculationError):
    """Not authorized to perform this action."""
    code = "NotAuthorized"

class NoCopiesAvailableError(CirculationError):
    """No copies available for borrowing."""
    code = "NoCopiesAvailable"

class AlreadyReturnedError(CirculationError):
    """Book has already been returned."""
    code = "AlreadyReturned"

class MaxRenewalsReachedError(CirculationError):
    """Maximum renewal limit reached."""
    code = "MaxRenewalsReached"

class CannotRenewOverdueError(CirculationError):
    """Cannot renew an overdue book."""
    code = "CannotRenewOverdue"

class PaymentExceedsOwedError(CirculationError):
    """Payment amount cannot exceed the fine owed."""
    code = "PaymentExceedsOwed"

class InvalidPaymentError(CirculationError):
    """Payment amount must be positive."""
    code = "InvalidPayment"

class FineAlreadyPaidError(CirculationError):
    """Fine has already been paid."""
    code = "FineAlreadyPaid"

class InvalidCopyAdjustmentError(CirculationError):
    """Total copies cannot drop below the number of copies on loan."""
    code = "InvalidCopyAdjustment"

    def __init__(self, message=None, reason="BelowBorrowedCount"):
        super().__init__(message)
        self.reason = reason

    def to_dict(self):
        return {**super().to_dict(), "reason": self.reason}


class BookOnLoanError(CirculationError):
    """Cannot withdraw a book while copies are on loan."""
    code = "BookOnLoan"

class InvalidDueDateError(CirculationError):
    """Due date must be in the future."""
    code = "InvalidDueDate"

class ConcurrentUpdateError(CirculationError):
    """Record was modified by another request; retry."""
    code = "ConcurrentUpdate"


class IneligibleToBorrowError(CirculationError):
    """Patron is not eligible to borrow this book."""
    code = "IneligibleToBorrow"

    def __init__(self, reason: IneligibilityReason, message=None):
        super().__init__(message)
        self.reason = reason

    def to_dict(self):
        return {**super().to_dict(), "reason": self.reason.value}
