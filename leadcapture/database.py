"""
Lead-capture store: declarative base, engine and session factory.

The analytics engine itself never opens a session. leadcapture.services.snapshots
loads the rows of one event through get_session() and hands the engine
plain records.
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadcapture.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


def normalize_url(raw: str) -> str:
    """SQLAlchemy 2.x only accepts the postgresql:// scheme."""
    if raw.startswith('postgres://'):
        return 'postgresql://' + raw[len('postgres://'):]
    return raw


def build_engine(url: str):
    if url.startswith('sqlite'):
        return create_engine(url, connect_args={'check_same_thread': False})
    return create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)


url = normalize_url(DATABASE_URL)
engine = build_engine(url)
SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()
