#!/usr/bin/env python

"""
    Configurations for Shelfmark

    :copyright: (c) 2025 by AUTHORS
    :license: see LICENSE for more details
"""

import os


# Determine environment
TESTING = os.getenv("TESTING", "false").lower() == "true"

# API server configuration
SCHEME = 'http'
HOST = os.environ.get('SHELFMARK_HOST', 'localhost')
PORT = int(os.environ.get('SHELFMARK_PORT', 8080))
WORKERS = int(os.environ.get('SHELFMARK_WORKERS', 1))
DEBUG = bool(int(os.environ.get('SHELFMARK_DEBUG', 0)))
LOG_LEVEL = os.environ.get('SHELFMARK_LOG_LEVEL', 'info')
SSL_CRT = os.environ.get('SHELFMARK_SSL_CRT')
SSL_KEY = os.environ.get('SHELFMARK_SSL_KEY')
CORS_ORIGINS = os.environ.get('SHELFMARK_CORS_ORIGINS', 'http://localhost:3000').split(',')

OPTIONS = {
    'host': HOST,
    'port': PORT,
    'log_level': LOG_LEVEL,
    'reload': DEBUG,
    'workers': WORKERS,
}
if SSL_CRT and SSL_KEY:
    OPTIONS['ssl_keyfile'] = SSL_KEY
    OPTIONS['ssl_certfile'] = SSL_CRT
    SCHEME = 'https'

# Circulation policy
LOAN_LIMIT = int(os.environ.get('SHELFMARK_LOAN_LIMIT', 5))
MAX_RENEWALS = int(os.environ.get('SHELFMARK_MAX_RENEWALS', 2))
LOAN_PERIOD_DAYS = int(os.environ.get('SHELFMARK_LOAN_PERIOD_DAYS', 14))
RENEWAL_PERIOD_DAYS = int(os.environ.get('SHELFMARK_RENEWAL_PERIOD_DAYS', 14))

# Fines, in whole currency units
FINE_DAILY_RATE = int(os.environ.get('SHELFMARK_FINE_DAILY_RATE', 1))
FINE_GRACE_DAYS = int(os.environ.get('SHELFMARK_FINE_GRACE_DAYS', 7))
FINE_EXTENDED_RATE = int(os.environ.get('SHELFMARK_FINE_EXTENDED_RATE', 2))
FINE_CAP = int(os.environ.get('SHELFMARK_FINE_CAP', 50))

DB_CONFIG = {
    'user': os.environ.get('DB_USER', 'postgres'),
    'password': os.environ.get('DB_PASSWORD'),
    'host': os.environ.get('DB_HOST', 'localhost'),
    'port': int(os.environ.get('DB_PORT', '5432')),
    'dbname': os.environ.get('DB_NAME', 'shelfmark'),
}

# Database configuration
DB_URI = os.environ.get('SHELFMARK_DB_URI') or (
    "sqlite:///:memory:" if TESTING else
    'postgresql+psycopg2://{user}:{password}@{host}:{port}/{dbname}'.format(**DB_CONFIG)
)

__all__ = [
    'SCHEME', 'HOST', 'PORT', 'DEBUG', 'LOG_LEVEL', 'OPTIONS', 'CORS_ORIGINS',
    'DB_URI', 'DB_CONFIG', 'TESTING',
    'LOAN_LIMIT', 'MAX_RENEWALS', 'LOAN_PERIOD_DAYS', 'RENEWAL_PERIOD_DAYS',
    'FINE_DAILY_RATE', 'FINE_GRACE_DAYS', 'FINE_EXTENDED_RATE', 'FINE_CAP',
]
