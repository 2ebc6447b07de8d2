#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_commands
    ~~~~~~~~~~~~~~~~~~~

    Validation of the command types before anything reaches the engine.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import pytest
from pydantic import ValidationError

from shelfmark.core.models import RoleEnum
from shelfmark.schemas.commands import (
    AddBookCommand,
    AdjustCopiesCommand,
    CreateLoanCommand,
    PayFineCommand,
    RegisterPatronCommand,
)


@pytest.mark.parametrize("isbn,expected", [
    ("0-306-40615-2", "0306406152"),
    ("978 0 306 40615 7", "9780306406157"),
    ("080442957x", "080442957X"),
])
def test_isbn_is_normalized(isbn, expected):
    command = AddBookCommand(isbn=isbn, title="Dune", author="Frank Herbert", changed_by_id=1)
    assert command.isbn == expected
    assert command.total_copies == 1


@pytest.mark.parametrize("isbn", ["12345", "97803064061571", "isbn-0306406152", ""])
def test_invalid_isbn(isbn):
    with pytest.raises(ValidationError, match="Please enter a valid ISBN"):
        AddBookCommand(isbn=isbn, title="Dune", author="Frank Herbert", changed_by_id=1)


def test_book_needs_a_copy():
    with pytest.raises(ValidationError):
        AddBookCommand(isbn="0306406152", title="Dune", author="Frank Herbert",
                       total_copies=0, changed_by_id=1)
    with pytest.raises(ValidationError):
        AdjustCopiesCommand(book_id=1, total_copies=0, changed_by_id=1)


def test_unknown_fields_rejected():
    with pytest.raises(ValidationError):
        CreateLoanCommand(patron_id=1, book_id=1, issued_by_id=2, status="Returned")


@pytest.mark.parametrize("amount", [0, -5])
def test_payment_must_be_positive(amount):
    with pytest.raises(ValidationError):
        PayFineCommand(loan_id=1, amount=amount, received_by_id=2)


def test_register_patron_defaults_to_student():
    command = RegisterPatronCommand(name="Sam", email="sam@example.org")
    assert command.role == RoleEnum.STUDENT
    with pytest.raises(ValidationError):
        RegisterPatronCommand(name="Sam", email="not-an-email")


def test_catalog_changes_name_the_staff_member():
    with pytest.raises(ValidationError):
        AddBookCommand(isbn="0306406152", title="Dune", author="Frank Herbert")
    with pytest.raises(ValidationError):
        AdjustCopiesCommand(book_id=1, total_copies=3)
