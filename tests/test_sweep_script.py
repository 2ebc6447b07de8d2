#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_sweep_script
    ~~~~~~~~~~~~~~~~~~~~~~~

    The shelfmark-sweep command line entry point.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import pytest

from shelfmark import sweep
from shelfmark.core import circulation
from shelfmark.core.models import LoanStatus
from conftest import NOW, days


@pytest.fixture
def loan(db_session, student, librarian, book):
    return circulation.create_loan(db_session, student.id, book.id, issued_by_id=librarian.id, now=NOW)


def test_sweep_reports_updates(db_session, loan, capsys):
    assert sweep.main(["--now", "2025-03-25T12:00:00Z"], session=db_session) == 0
    out = capsys.readouterr().out
    assert "Loans updated: 1" in out
    assert "Newly overdue: 1" in out
    assert "Total fines assessed on overdue loans: 13" in out

    db_session.refresh(loan)
    assert loan.status == LoanStatus.OVERDUE
    assert loan.fine_amount == 13


def test_sweep_twice_is_quiet(db_session, loan, capsys):
    when = (NOW + days(20)).isoformat()
    sweep.main(["--now", when], session=db_session)
    capsys.readouterr()

    assert sweep.main(["--now", when], session=db_session) == 0
    assert "Loans updated: 0" in capsys.readouterr().out


def test_sweep_rejects_bad_timestamp(db_session):
    with pytest.raises(SystemExit):
        sweep.main(["--now", "yesterday"], session=db_session)
