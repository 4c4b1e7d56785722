"""
Database engine and session factory.

Academic records live in SQLAlchemy tables on an in-memory SQLite engine.
Each RecordStore builds its own engine through make_engine(), so state is
volatile and no two stores share data.
"""

from datetime import timezone
from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase
from sqlalchemy.pool import StaticPool
from sqlalchemy.types import DateTime, TypeDecorator

# SQLite's private in-memory database
MEMORY_URL = "sqlite://"
MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


class UTCDateTime(TypeDecorator):
    """
    Timestamp stored as naive UTC and read back timezone-aware.

    SQLite drops the offset, so values are converted to UTC on the way in
    and tagged as UTC on the way out.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value


def make_engine(url: str = MEMORY_URL) -> Engine:
    """
    Create an in-memory engine for the record tables.

    Only in-memory SQLite URLs are accepted: a file or server database
    would keep records across restarts and be re-seeded on every start.
    In-memory SQLite exists per connection, so StaticPool pins one
    connection for the engine's lifetime and check_same_thread=False lets
    FastAPI's worker threads use it. Callers serialize access themselves.
    """
    if url not in MEMORY_URLS:
        raise ValueError("Record store must be in-memory ({}), got: {}".format(
            " or ".join(MEMORY_URLS), url))
    return create_engine(
        url,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def make_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to the given engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine: Engine):
    """Create all record tables on the engine."""
    # Import models so they are registered with Base.metadata
    from app.models import Student, Subject  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_store(request: Request):
    """
    FastAPI dependency that provides the application's RecordStore.

    The store is created once by create_app() and kept on app.state, so
    every request sees the same collections.
    """
    return request.app.state.store
