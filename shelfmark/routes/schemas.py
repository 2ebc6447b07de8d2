import enum

from pydantic import BaseModel, Field


class LoanStatusFilter(enum.Enum):
    """Statuses a loan can reach today; Lost has no operation producing it."""
    ACTIVE = "Active"
    OVERDUE = "Overdue"
    RETURNED = "Returned"


class ReturnRequest(BaseModel):
    returned_by_id: int = Field(..., gt=0)

    class Config:
        extra = "forbid"


class RenewRequest(BaseModel):
    requested_by_id: int = Field(..., gt=0)

    class Config:
        extra = "forbid"


class PaymentRequest(BaseModel):
    amount: int = Field(..., gt=0)
    received_by_id: int = Field(..., gt=0)

    class Config:
        extra = "forbid"


class CopiesRequest(BaseModel):
    total_copies: int = Field(..., ge=1)
    changed_by_id: int = Field(..., gt=0)

    class Config:
        extra = "forbid"


class ActiveRequest(BaseModel):
    is_active: bool
    changed_by_id: int = Field(..., gt=0)

    class Config:
        extra = "forbid"
