#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
    tests.test_fines
    ~~~~~~~~~~~~~~~~

    Overdue fine policy: 1 unit/day for the first week, 2 units/day
    after, capped at 50.

    :copyright: (c) 2025 by Authors.
    :license: see LICENSE for more details.
"""

import pytest
from datetime import datetime, timedelta

from shelfmark.core.fines import calculate_fine, days_overdue
from conftest import NOW, days


def test_ten_days_late():
    assert calculate_fine(NOW, NOW + days(10)) == 7 * 1 + 3 * 2


def test_fine_is_capped():
    assert calculate_fine(NOW, NOW + days(100)) == 50


def test_not_yet_due():
    assert calculate_fine(NOW, NOW - days(1)) == 0
    assert calculate_fine(NOW, NOW) == 0


@pytest.mark.parametrize("late, expected", [
    (days(1), 1),
    (days(7), 7),
    (days(8), 9),
    (days(28), 49),
    (days(29), 50),
])
def test_fine_schedule(late, expected):
    assert calculate_fine(NOW, NOW + late) == expected


def test_partial_day_rounds_up():
    assert days_overdue(NOW, NOW + timedelta(minutes=1)) == 1
    assert calculate_fine(NOW, NOW + days(2) + timedelta(hours=3)) == 3


def test_naive_datetimes_are_utc():
    naive_due = datetime(2025, 3, 1, 12, 0)
    assert calculate_fine(naive_due, NOW + days(10)) == 13


def test_fine_is_deterministic():
    evaluated_at = NOW + days(12)
    assert calculate_fine(NOW, evaluated_at) == calculate_fine(NOW, evaluated_at) == 17
