from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from shelfmark.core.models import LoanStatus


class Fine(BaseModel):
    amount: int
    is_paid: bool
    paid_amount: int
    paid_at: Optional[datetime] = None


class Renewal(BaseModel):
    renewal_date: datetime
    new_due_date: datetime
    renewed_by_id: int

    class Config:
        from_attributes = True


class Loan(BaseModel):
    id: int
    book_id: int
    patron_id: int
    borrowed_at: datetime
    due_at: datetime
    returned_at: Optional[datetime] = None
    status: LoanStatus
    renewal_count: int
    fine: Fine
    notes: Optional[str] = None
    issued_by_id: int
    returned_to_id: Optional[int] = None
    renewal_history: List[Renewal] = []

    class Config:
        from_attributes = True


class Sweep(BaseModel):
    count: int
    transitioned: int
    refreshed: int
    total_fines: int

    class Config:
        from_attributes = True
