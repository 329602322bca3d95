# /app/services/run_helpers/history_committer.py

import logging
import threading
from typing import Callable, ContextManager, Optional

from app.core.errors import PersistenceError
from app.models.history_model import HistoryRecord
from .. import history_service
from ..database_service import DatabaseService, database_scope
from .batch import Batch

logger = logging.getLogger(__name__)


class FinalizationLatch:
    """Single-fire guard: the first try_acquire() wins, every later call loses."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._fired = False

    @property
    def fired(self) -> bool:
        return self._fired

    def try_acquire(self) -> bool:
        with self._lock:
            if self._fired:
                return False
            self._fired = True
            return True


class HistoryCommitter:
    """
    Persists a finished batch as one history record.

    The store is shared with the history API, so the insert is still guarded
    by an existence check on the batch id even though the orchestrator only
    calls commit() once per batch. Store failures are logged and swallowed.
    """

    def __init__(self, store_scope: Callable[[], ContextManager[DatabaseService]] = database_scope):
        self._store_scope = store_scope

    def commit(self, batch: Batch) -> Optional[HistoryRecord]:
        """Returns the written record, or None if nothing was written."""
        if not (batch.system_prompt or batch.user_prompt):
            logger.info("Batch %s has no prompts; not recording history", batch.id)
            return None

        record = batch.to_history_record()
        try:
            with self._store_scope() as db:
                created = history_service.save_history_record(db, record)
        except PersistenceError:
            logger.exception("Could not save history for batch %s", batch.id)
            return None
        return record if created else None
