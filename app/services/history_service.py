# /app/services/history_service.py

import logging
from typing import Dict, List

from pydantic import ValidationError

from .database_service import DatabaseService
from ..core.config import HISTORY_LIMIT
from ..models.history_model import HistoryRecord

logger = logging.getLogger(__name__)


# --- HELPERS ---

def _to_history_record(row) -> HistoryRecord:
    return HistoryRecord(
        id=row.id,
        timestamp=row.timestamp,
        systemPrompt=row.system_prompt,
        userPrompt=row.user_prompt,
        config=row.config,
        results=row.results,
        isFavorite=bool(row.is_favorite),
    )


def _to_row(record: HistoryRecord) -> Dict:
    """Flattens a record into the column layout of the test_runs table."""
    return {
        "id": record.id,
        "timestamp": record.timestamp,
        "system_prompt": record.systemPrompt,
        "user_prompt": record.userPrompt,
        "config": record.config.model_dump(mode="json", by_alias=True),
        "results": [r.model_dump(mode="json") for r in record.results],
        "is_favorite": record.isFavorite,
    }


def favorites_first(records: List[HistoryRecord]) -> List[HistoryRecord]:
    return sorted(records, key=lambda r: (not r.isFavorite, -r.timestamp))


# --- PUBLIC SERVICE FUNCTIONS ---

def get_history(db: DatabaseService, limit: int = HISTORY_LIMIT) -> List[HistoryRecord]:
    """
    Returns the most recent history records, favorites first. Rows that no
    longer validate are skipped rather than failing the whole listing.
    """
    records = []
    for row in db.get_history_records(limit):
        try:
            records.append(_to_history_record(row))
        except ValidationError as e:
            logger.warning("Skipping corrupted history record %s: %s", getattr(row, "id", "N/A"), e)
    return favorites_first(records)


def save_history_record(db: DatabaseService, record: HistoryRecord) -> bool:
    """
    Inserts the record unless one with the same id already exists.
    Returns True when a row was written.
    """
    if db.get_history_record(record.id) is not None:
        logger.info("History record %s already exists; skipping insert", record.id)
        return False
    db.add_history_record(_to_row(record))
    return True


def delete_history_record(db: DatabaseService, run_id: str) -> List[HistoryRecord]:
    db.delete_history_record(run_id)
    return get_history(db)


def toggle_history_favorite(db: DatabaseService, run_id: str) -> List[HistoryRecord]:
    db.toggle_history_favorite(run_id)
    return get_history(db)
