import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool
from shelfmark.configs import DB_URI, DEBUG

logger = logging.getLogger(__name__)


def make_engine(uri=DB_URI, echo=DEBUG):
    # Only use client_encoding for PostgreSQL, not SQLite
    engine_kwargs = {'echo': echo}
    if uri.startswith('sqlite'):
        engine_kwargs['connect_args'] = {'check_same_thread': False, 'timeout': 30}
        if ':memory:' in uri:
            engine_kwargs['poolclass'] = StaticPool
    else:
        engine_kwargs['client_encoding'] = 'utf8'
    return create_engine(uri, **engine_kwargs)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
session = scoped_session(SessionLocal)


class ShelfmarkBase:
    @classmethod
    def get_many(cls, db_session, offset=None, limit=None):
        return db_session.query(cls).offset(offset).limit(limit).all()


Base = declarative_base(cls=ShelfmarkBase)


def init(bind=None):
    # Tables must be registered on Base before create_all
    from shelfmark.core import models  # noqa: F401
    try:
        Base.metadata.create_all(bind=bind or engine)
        return session
    except Exception as e:
        logger.warning(f"[WARNING] Database initialization failed: {e}")
