#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_eligibility
    ~~~~~~~~~~~~~~~~~~~~~~

    Each refusal reason on its own, and the order in which they apply.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import pytest

from shelfmark.core import circulation
from shelfmark.core.eligibility import check_eligibility
from shelfmark.core.exceptions import (
    IneligibilityReason,
    PatronNotFoundError,
    BookNotFoundError,
)
from conftest import NOW, days


@pytest.fixture
def borrow(db_session, librarian):
    def _borrow(patron, book, due_in=14):
        return circulation.create_loan(
            db_session, patron.id, book.id,
            due_at=NOW + days(due_in), issued_by_id=librarian.id, now=NOW)
    return _borrow


def test_eligible(db_session, student, book):
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility
    assert eligibility.reason is None


def test_inactive_account(db_session, student, book):
    student.is_active = False
    db_session.commit()
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility.reason == IneligibilityReason.ACCOUNT_INACTIVE


def test_duplicate_active_loan(db_session, student, book, borrow):
    borrow(student, book)
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert not eligibility
    assert eligibility.reason == IneligibilityReason.DUPLICATE_ACTIVE_LOAN


def test_borrow_limit_reached(db_session, student, make_book, borrow):
    for _ in range(5):
        borrow(student, make_book())
    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW)
    assert eligibility.reason == IneligibilityReason.BORROW_LIMIT_REACHED
    assert "5 books" in eligibility.message


def test_borrow_limit_is_configurable(db_session, student, make_book, borrow):
    borrow(student, make_book())
    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW, limit=1)
    assert eligibility.reason == IneligibilityReason.BORROW_LIMIT_REACHED


def test_has_overdue_loan(db_session, student, make_book, borrow):
    borrow(student, make_book(), due_in=1)
    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW + days(3))
    assert eligibility.reason == IneligibilityReason.HAS_OVERDUE_LOAN


def test_unpaid_fine_blocks_with_no_active_loans(db_session, student, librarian, make_book, borrow):
    loan = borrow(student, make_book(), due_in=1)
    circulation.return_loan(db_session, loan.id, librarian.id, now=NOW + days(6))
    assert loan.fine_amount == 5
    assert student.active_loan_ids == []

    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW + days(6))
    assert eligibility.reason == IneligibilityReason.HAS_UNPAID_FINE


def test_inactive_book(db_session, student, book):
    book.is_active = False
    db_session.commit()
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility.reason == IneligibilityReason.BOOK_INACTIVE


def test_no_copies_available(db_session, student, make_patron, make_book, borrow):
    book = make_book(copies=1)
    borrow(make_patron("Ada"), book)
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility.reason == IneligibilityReason.NO_COPIES_AVAILABLE


def test_first_failing_reason_wins(db_session, student, make_book, borrow):
    book = make_book(copies=2)
    borrow(student, book, due_in=1)
    # duplicate, overdue and (with limit=1) limit all fail; duplicate is checked first
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW + days(3), limit=1)
    assert eligibility.reason == IneligibilityReason.DUPLICATE_ACTIVE_LOAN


def test_inactive_account_before_duplicate(db_session, student, book, borrow):
    borrow(student, book)
    student.is_active = False
    db_session.commit()
    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility.reason == IneligibilityReason.ACCOUNT_INACTIVE


def test_borrow_limit_before_overdue(db_session, student, make_book, borrow):
    borrow(student, make_book(), due_in=1)
    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW + days(3), limit=1)
    assert eligibility.reason == IneligibilityReason.BORROW_LIMIT_REACHED


def test_overdue_before_unpaid_fine(db_session, student, librarian, make_book, borrow):
    returned = borrow(student, make_book(), due_in=1)
    borrow(student, make_book(), due_in=1)
    circulation.return_loan(db_session, returned.id, librarian.id, now=NOW + days(6))
    assert returned.fine_amount == 5

    eligibility = check_eligibility(db_session, student.id, make_book().id, now=NOW + days(6))
    assert eligibility.reason == IneligibilityReason.HAS_OVERDUE_LOAN


def test_unpaid_fine_before_inactive_book(db_session, student, librarian, make_book, borrow):
    loan = borrow(student, make_book(), due_in=1)
    circulation.return_loan(db_session, loan.id, librarian.id, now=NOW + days(6))
    book = make_book()
    book.is_active = False
    db_session.commit()

    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW + days(6))
    assert eligibility.reason == IneligibilityReason.HAS_UNPAID_FINE


def test_inactive_book_before_no_copies(db_session, student, make_patron, make_book, borrow):
    book = make_book(copies=1)
    borrow(make_patron("Ada"), book)
    book.is_active = False
    db_session.commit()

    eligibility = check_eligibility(db_session, student.id, book.id, now=NOW)
    assert eligibility.reason == IneligibilityReason.BOOK_INACTIVE


def test_missing_records(db_session, student, book):
    with pytest.raises(PatronNotFoundError):
        check_eligibility(db_session, 404, book.id)
    with pytest.raises(BookNotFoundError):
        check_eligibility(db_session, student.id, 404)
