#!/usr/bin/env python

"""
    Core module for Shelfmark, db & circulation engine

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

from shelfmark.core import db as database

database.init()
db = database.session

__all__ = ["db", "database"]
