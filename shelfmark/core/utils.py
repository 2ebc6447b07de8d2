import datetime
import re

from sqlalchemy import DateTime
from sqlalchemy.types import TypeDecorator

ISBN_PATTERN = re.compile(r"^(?:\d{9}[\dX]|\d{13})$")


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def as_utc(value: datetime.datetime) -> datetime.datetime:
    """Naive datetimes are taken to already be in UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=datetime.timezone.utc)
    return value.astimezone(datetime.timezone.utc)


def normalize_isbn(isbn: str) -> str:
    return isbn.replace("-", "").replace(" ", "").strip().upper()


class UTCDateTime(TypeDecorator):
    """Timezone-aware UTC datetimes on every backend.

    SQLite drops tzinfo on the way in and out, so values are normalized
    to UTC before binding and re-tagged as UTC when loaded.
    """
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        return as_utc(value)

    def process_result_value(self, value, dialect):
        return as_utc(value)
