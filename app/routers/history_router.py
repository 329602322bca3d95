# /app/routers/history_router.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.errors import PersistenceError
from ..models import history_model
from ..services import history_service
from ..services.database_service import DatabaseService, get_db_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",  # Maps to /api/history
    response_model=List[history_model.HistoryRecord],
    summary="Get Run History",
)
def get_history(db: DatabaseService = Depends(get_db_service)):
    """Returns the most recent test runs, favorites first."""
    try:
        return history_service.get_history(db)
    except PersistenceError as e:
        logger.error("ERROR fetching run history: %s", e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while fetching the run history.",
        )


@router.post(
    "",  # Maps to /api/history
    response_model=history_model.HistorySaveResponse,
    summary="Save a Test Run",
)
def save_history_record(payload: history_model.HistoryRecord, db: DatabaseService = Depends(get_db_service)):
    """
    Persists a test run. A record whose id already exists is left untouched
    and reported with `created: false`.
    """
    try:
        created = history_service.save_history_record(db, payload)
        return history_model.HistorySaveResponse(created=created)
    except PersistenceError as e:
        logger.error("ERROR saving run %s: %s", payload.id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while saving the test run.",
        )


@router.delete(
    "/{run_id}",
    response_model=List[history_model.HistoryRecord],
    summary="Delete a Test Run",
)
def delete_history_record(run_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        return history_service.delete_history_record(db, run_id)
    except PersistenceError as e:
        logger.error("ERROR deleting run %s: %s", run_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while deleting the test run.",
        )


@router.patch(
    "/{run_id}/favorite",
    response_model=List[history_model.HistoryRecord],
    summary="Toggle Test Run Favorite",
)
def toggle_history_favorite(run_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        return history_service.toggle_history_favorite(db, run_id)
    except PersistenceError as e:
        logger.error("ERROR updating run %s: %s", run_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while updating the test run.",
        )
