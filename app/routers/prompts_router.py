# /app/routers/prompts_router.py

import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from ..core.errors import PersistenceError
from ..models import prompt_model
from ..models.prompt_model import PromptType
from ..services import prompt_service
from ..services.database_service import DatabaseService, get_db_service

logger = logging.getLogger(__name__)

router = APIRouter()


def _storage_failure(action: str, error: Exception) -> HTTPException:
    logger.error("Prompt store failed to %s: %s", action, error)
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while trying to {action}.",
    )


@router.get(
    "/{prompt_type}",
    response_model=List[prompt_model.SavedPrompt],
    summary="List Saved Prompts",
    description="Returns all saved prompts of one type, favorites first, then newest first.",
)
def list_prompts(prompt_type: PromptType, db: DatabaseService = Depends(get_db_service)):
    try:
        return prompt_service.list_prompts(db, prompt_type)
    except PersistenceError as e:
        raise _storage_failure("list prompts", e)


@router.post("/{prompt_type}", response_model=List[prompt_model.SavedPrompt], summary="Save a Prompt")
def save_prompt(
    prompt_type: PromptType,
    payload: prompt_model.SavedPromptCreate,
    db: DatabaseService = Depends(get_db_service),
):
    """Creates a prompt, or updates it when the id already exists. Returns the updated list."""
    try:
        return prompt_service.save_prompt(db, prompt_type, payload)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except PersistenceError as e:
        raise _storage_failure("save the prompt", e)


@router.delete("/{prompt_type}/{prompt_id}", response_model=List[prompt_model.SavedPrompt], summary="Delete a Prompt")
def delete_prompt(prompt_type: PromptType, prompt_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        return prompt_service.delete_prompt(db, prompt_type, prompt_id)
    except PersistenceError as e:
        raise _storage_failure("delete the prompt", e)


@router.patch("/{prompt_type}/{prompt_id}/title", response_model=List[prompt_model.SavedPrompt], summary="Rename a Prompt")
def rename_prompt(
    prompt_type: PromptType,
    prompt_id: str,
    payload: prompt_model.TitleUpdate,
    db: DatabaseService = Depends(get_db_service),
):
    try:
        return prompt_service.rename_prompt(db, prompt_type, prompt_id, payload.title)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e))
    except PersistenceError as e:
        raise _storage_failure("rename the prompt", e)


@router.patch("/{prompt_type}/{prompt_id}/favorite", response_model=List[prompt_model.SavedPrompt], summary="Toggle Prompt Favorite")
def toggle_prompt_favorite(prompt_type: PromptType, prompt_id: str, db: DatabaseService = Depends(get_db_service)):
    try:
        return prompt_service.toggle_prompt_favorite(db, prompt_type, prompt_id)
    except PersistenceError as e:
        raise _storage_failure("update the prompt", e)
