"""
    Overdue fine policy.

    Both the overdue sweep and the return path price a loan through
    `calculate_fine`, so it must stay a pure function of its inputs.
"""

import datetime
import math

from shelfmark.configs import (
    FINE_DAILY_RATE,
    FINE_GRACE_DAYS,
    FINE_EXTENDED_RATE,
    FINE_CAP,
)
from shelfmark.core.utils import as_utc

ONE_DAY = datetime.timedelta(days=1)


def days_overdue(due_at: datetime.datetime, evaluated_at: datetime.datetime) -> int:
    """Whole days past `due_at`, rounding any part of a day up."""
    late = as_utc(evaluated_at) - as_utc(due_at)
    if late <= datetime.timedelta(0):
        return 0
    return math.ceil(late / ONE_DAY)


def calculate_fine(due_at: datetime.datetime, evaluated_at: datetime.datetime) -> int:
    """
    Fine owed for a loan due at `due_at` when evaluated at `evaluated_at`
    (now, or the return time).

    The first FINE_GRACE_DAYS overdue days cost FINE_DAILY_RATE each,
    every later day FINE_EXTENDED_RATE, and the total never exceeds FINE_CAP.
    """
    days = days_overdue(due_at, evaluated_at)
    if days <= 0:
        return 0
    fine = min(days, FINE_GRACE_DAYS) * FINE_DAILY_RATE
    fine += max(0, days - FINE_GRACE_DAYS) * FINE_EXTENDED_RATE
    return min(fine, FINE_CAP)
