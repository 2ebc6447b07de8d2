#!/usr/bin/env python3
"""
Mark overdue loans and refresh their fines.

Meant to be run by cron or a staff member; each run is one transaction
and running it twice for the same instant changes nothing the second time.
"""
import argparse
import logging
import sys
from datetime import datetime

from shelfmark.configs import LOG_LEVEL
from shelfmark.core.exceptions import ShelfmarkError

logger = logging.getLogger("shelfmark.sweep")


def parse_now(value):
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid ISO-8601 timestamp: {value}")


def main(argv=None, session=None):
    parser = argparse.ArgumentParser(
        description="Mark overdue loans and refresh their fines"
    )
    parser.add_argument(
        "--now",
        type=parse_now,
        default=None,
        help="Evaluate as of this ISO-8601 time instead of the current time"
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=LOG_LEVEL.upper())

    from shelfmark.core.api import CirculationAPI
    from shelfmark.schemas.commands import SweepOverdueCommand

    try:
        result = CirculationAPI.sweep_overdue(SweepOverdueCommand(now=args.now), session=session)
    except ShelfmarkError as e:
        logger.error(f"Overdue sweep failed: {e}")
        return 1

    print(f"Loans updated: {result.count}")
    print(f"  Newly overdue: {result.transitioned}")
    print(f"  Fines refreshed: {result.refreshed}")
    print(f"  Total fines assessed on overdue loans: {result.total_fines}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
