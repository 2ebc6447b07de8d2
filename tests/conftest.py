import os

os.environ.setdefault("TESTING", "true")

import pytest
from datetime import datetime, timedelta, timezone
from sqlalchemy.orm import sessionmaker

from shelfmark.core.db import Base, make_engine
from shelfmark.core.api import CirculationAPI
from shelfmark.core.models import RoleEnum
from shelfmark.schemas.commands import AddBookCommand, RegisterPatronCommand

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def days(n):
    return timedelta(days=n)


@pytest.fixture
def engine():
    engine = make_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def make_patron(db_session):
    def _make_patron(name, role=RoleEnum.STUDENT):
        return CirculationAPI.register_patron(RegisterPatronCommand(
            name=name,
            email=f"{name.lower()}@example.org",
            role=role,
        ), session=db_session)
    return _make_patron


@pytest.fixture
def make_book(db_session, librarian):
    isbns = iter(f"978030640{n:04d}" for n in range(1000))

    def _make_book(copies=1, title="The Name of the Rose"):
        return CirculationAPI.add_book(AddBookCommand(
            isbn=next(isbns),
            title=title,
            author="Umberto Eco",
            total_copies=copies,
            changed_by_id=librarian.id,
        ), session=db_session)
    return _make_book


@pytest.fixture
def librarian(make_patron):
    return make_patron("Libby", role=RoleEnum.LIBRARIAN)


@pytest.fixture
def student(make_patron):
    return make_patron("Sam")


@pytest.fixture
def book(make_book):
    return make_book(copies=2)
