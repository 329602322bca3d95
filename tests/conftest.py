# /tests/conftest.py

import asyncio
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.db.base import Base
from app.services.completion_client import StreamOutcome
from app.services.database_service import DatabaseService
from app.services.run_helpers.history_committer import HistoryCommitter

HANG = "hang"


class ScriptedClient:
    """
    Stands in for CompletionClient. Each call plays the next script entry:
    a list of tokens followed by an outcome, or HANG to stream the tokens
    and then block until the batch is aborted.
    Calls arrive in slot order when the stagger is zero.
    """

    def __init__(self, scripts: Optional[List[Tuple[List[str], object]]] = None, default=None):
        self.scripts = list(scripts or [])
        self.default = default if default is not None else (["ok"], StreamOutcome.completed())
        self.calls: List[Dict] = []
        self.closed = False

    async def stream_completion(self, messages, gen_config, credential, token, on_token):
        index = len(self.calls)
        self.calls.append({"messages": messages, "config": gen_config, "credential": credential})
        tokens, outcome = self.scripts[index] if index < len(self.scripts) else self.default
        for text in tokens:
            on_token(text)
            await asyncio.sleep(0)
        if outcome == HANG:
            await token.wait()
            return StreamOutcome.cancelled()
        return outcome

    async def aclose(self):
        self.closed = True


class RecordingStore:
    """Minimal history store: remembers inserted rows and counts calls."""

    def __init__(self, existing_ids=()):
        self.rows: Dict[str, Dict] = {run_id: {"id": run_id} for run_id in existing_ids}
        self.insert_calls = 0

    def get_history_record(self, run_id):
        return self.rows.get(run_id)

    def add_history_record(self, row):
        self.insert_calls += 1
        self.rows[row["id"]] = row
        return row

    @contextmanager
    def scope(self):
        yield self


@pytest.fixture
def recording_store():
    return RecordingStore()


@pytest.fixture
def committer(recording_store):
    return HistoryCommitter(store_scope=recording_store.scope)


@pytest.fixture
def session_factory():
    """A fresh in-memory SQLite database per test, shared across threads."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    yield factory
    engine.dispose()


@pytest.fixture
def db_service(session_factory):
    session = session_factory()
    try:
        yield DatabaseService(db_session=session)
    finally:
        session.close()
