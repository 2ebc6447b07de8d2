from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from shelfmark.core.models import RoleEnum


class BorrowHistory(BaseModel):
    loan_id: int
    book_id: int
    borrowed_at: datetime
    returned_at: datetime
    fine: int

    class Config:
        from_attributes = True


class Patron(BaseModel):
    id: int
    name: str
    email: str
    role: RoleEnum
    is_active: bool
    active_loan_ids: List[int] = []
    fines_accrued: int
    outstanding_fine_total: int
    history: List[BorrowHistory] = []
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Eligibility(BaseModel):
    eligible: bool
    reason: Optional[str] = None
    message: Optional[str] = None
