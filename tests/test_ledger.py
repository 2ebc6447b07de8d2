#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_ledger
    ~~~~~~~~~~~~~~~~~

    Copy counters only move through reserve, release and adjust_total,
    and never leave 0 <= available <= total.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import pytest

from shelfmark.core import ledger
from shelfmark.core.exceptions import (
    BookNotFoundError,
    NoCopiesAvailableError,
    InvalidCopyAdjustmentError,
    LedgerInconsistencyError,
)


def test_reserve_and_release(db_session, book):
    assert ledger.reserve_copy(db_session, book.id).available_copies == 1
    assert ledger.reserve_copy(db_session, book.id).available_copies == 0
    assert ledger.release_copy(db_session, book.id).available_copies == 1


def test_reserve_last_copy_only_once(db_session, make_book):
    book = make_book(copies=1)
    ledger.reserve_copy(db_session, book.id)
    with pytest.raises(NoCopiesAvailableError):
        ledger.reserve_copy(db_session, book.id)
    db_session.refresh(book)
    assert book.available_copies == 0


def test_release_beyond_total_is_rejected(db_session, book):
    with pytest.raises(LedgerInconsistencyError):
        ledger.release_copy(db_session, book.id)
    db_session.refresh(book)
    assert book.available_copies == book.total_copies == 2


def test_unknown_book(db_session):
    with pytest.raises(BookNotFoundError):
        ledger.reserve_copy(db_session, 404)
    with pytest.raises(BookNotFoundError):
        ledger.adjust_total(db_session, 404, 3)


def test_adjust_total_keeps_lent_copies(db_session, make_book):
    book = make_book(copies=3)
    ledger.reserve_copy(db_session, book.id)
    ledger.reserve_copy(db_session, book.id)

    book = ledger.adjust_total(db_session, book.id, 5)
    assert (book.total_copies, book.available_copies) == (5, 3)

    book = ledger.adjust_total(db_session, book.id, 2)
    assert (book.total_copies, book.available_copies) == (2, 0)


def test_adjust_total_below_lent_copies(db_session, make_book):
    book = make_book(copies=3)
    ledger.reserve_copy(db_session, book.id)
    ledger.reserve_copy(db_session, book.id)

    with pytest.raises(InvalidCopyAdjustmentError) as excinfo:
        ledger.adjust_total(db_session, book.id, 1)
    assert "2 copies are currently on loan" in str(excinfo.value)

    db_session.refresh(book)
    assert (book.total_copies, book.available_copies) == (3, 1)


def test_adjust_total_requires_a_copy(db_session, book):
    with pytest.raises(InvalidCopyAdjustmentError):
        ledger.adjust_total(db_session, book.id, 0)
