# /app/db/database.py

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from ..core.config import DATABASE_URL
from .base_class import Base

# The 'check_same_thread' argument is only needed for SQLite. Batches commit
# their history from the event loop while request handlers run in the
# threadpool, so the same engine is shared across threads.
engine_args = {"connect_args": {"check_same_thread": False}} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, **engine_args)

# Each instance of this class is a database session.
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Creates any missing tables. Importing the registry registers every model."""
    from . import base  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


# Dependency to get a DB session. This is used in the API routers.
def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """A session for work that outlives a single request, such as a batch commit."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
