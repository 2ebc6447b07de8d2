#!/usr/bin/env python
"""
    Command schemas for Shelfmark, one per circulation operation.

    Unknown fields are rejected so malformed requests never reach
    the engine.

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from shelfmark.core.models import RoleEnum
from shelfmark.core.utils import ISBN_PATTERN, normalize_isbn


class Command(BaseModel):

    class Config:
        extra = "forbid"


class CreateLoanCommand(Command):
    patron_id: int = Field(..., gt=0)
    book_id: int = Field(..., gt=0)
    issued_by_id: int = Field(..., gt=0)
    due_at: Optional[datetime] = None
    notes: Optional[str] = Field(default=None, max_length=500)

    class Config:
        extra = "forbid"
        json_schema_extra = {
            "example": {
                "patron_id": 12,
                "book_id": 3,
                "issued_by_id": 1,
                "due_at": "2025-10-15T12:00:00Z",
                "notes": "Reference desk copy"
            }
        }


class ReturnLoanCommand(Command):
    loan_id: int = Field(..., gt=0)
    returned_by_id: int = Field(..., gt=0)


class RenewLoanCommand(Command):
    loan_id: int = Field(..., gt=0)
    requested_by_id: int = Field(..., gt=0)


class PayFineCommand(Command):
    loan_id: int = Field(..., gt=0)
    amount: int = Field(..., gt=0)
    received_by_id: int = Field(..., gt=0)


class SweepOverdueCommand(Command):
    now: Optional[datetime] = None


class AddBookCommand(Command):
    isbn: str
    title: str = Field(..., min_length=1, max_length=200)
    author: str = Field(..., min_length=1, max_length=100)
    total_copies: int = Field(default=1, ge=1)
    changed_by_id: int = Field(..., gt=0)

    @field_validator("isbn")
    @classmethod
    def valid_isbn(cls, value):
        isbn = normalize_isbn(value)
        if not ISBN_PATTERN.match(isbn):
            raise ValueError("Please enter a valid ISBN")
        return isbn


class AdjustCopiesCommand(Command):
    book_id: int = Field(..., gt=0)
    total_copies: int = Field(..., ge=1)
    changed_by_id: int = Field(..., gt=0)


class SetBookActiveCommand(Command):
    book_id: int = Field(..., gt=0)
    is_active: bool
    changed_by_id: int = Field(..., gt=0)


class RegisterPatronCommand(Command):
    name: str = Field(..., min_length=1, max_length=50)
    email: EmailStr
    role: RoleEnum = RoleEnum.STUDENT
