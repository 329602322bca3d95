# /app/routers/settings_router.py

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.errors import PersistenceError
from ..models import settings_model
from ..services import settings_service
from ..services.database_service import DatabaseService, get_db_service
from ..services.run_service import BatchOrchestrator, get_orchestrator

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/api-key", response_model=settings_model.ApiKeyPayload, summary="Get the Stored API Key")
def get_api_key(db: DatabaseService = Depends(get_db_service)):
    try:
        return settings_model.ApiKeyPayload(apiKey=settings_service.get_api_key(db))
    except PersistenceError as e:
        logger.error("ERROR reading API key: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not read the API key.")


@router.post("/api-key", response_model=settings_model.SuccessResponse, summary="Store the API Key")
def save_api_key(payload: settings_model.ApiKeyPayload, db: DatabaseService = Depends(get_db_service)):
    try:
        settings_service.save_api_key(db, payload.apiKey)
        return settings_model.SuccessResponse()
    except PersistenceError as e:
        logger.error("ERROR saving API key: %s", e)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not save the API key.")


@router.post(
    "/verify",
    response_model=settings_model.VerifyResponse,
    summary="Verify a Credential and Model",
    description="Sends a one-token, non-streaming request to check that the key and model are accepted.",
)
async def verify_connection(
    payload: settings_model.VerifyRequest,
    db: DatabaseService = Depends(get_db_service),
    orchestrator: BatchOrchestrator = Depends(get_orchestrator),
):
    try:
        api_key = settings_service.resolve_credential(db, payload.apiKey)
    except PersistenceError as e:
        logger.warning("Stored API key unavailable, verifying without it: %s", e)
        api_key = payload.apiKey or ""
    return await orchestrator.client.verify_connection(api_key, payload.model)
