# /app/services/prompt_service.py

import logging
import time
import uuid
from datetime import datetime
from typing import List

from .database_service import DatabaseService
from ..models.prompt_model import PromptType, SavedPrompt, SavedPromptCreate

logger = logging.getLogger(__name__)


# --- HELPERS ---

def _to_saved_prompt(row) -> SavedPrompt:
    return SavedPrompt(
        id=row.id,
        title=row.title,
        content=row.content,
        type=PromptType(row.prompt_type),
        createdAt=row.created_at,
        isFavorite=bool(row.is_favorite),
    )


def _default_title(prompt_type: PromptType) -> str:
    """'System Prompt 14:05' style titles, using local wall-clock time."""
    label = "System" if prompt_type == PromptType.SYSTEM else "User"
    return f"{label} Prompt {datetime.now().strftime('%H:%M')}"


def favorites_first(prompts: List[SavedPrompt]) -> List[SavedPrompt]:
    """Favorites before the rest; newest first within each group."""
    return sorted(prompts, key=lambda p: (not p.isFavorite, -p.createdAt))


# --- PUBLIC SERVICE FUNCTIONS ---

def list_prompts(db: DatabaseService, prompt_type: PromptType) -> List[SavedPrompt]:
    return favorites_first([_to_saved_prompt(row) for row in db.get_prompts(prompt_type.value)])


def save_prompt(db: DatabaseService, prompt_type: PromptType, payload: SavedPromptCreate) -> List[SavedPrompt]:
    """
    Creates a prompt, or updates it in place when the id already exists.
    Returns the refreshed list for that prompt type.
    """
    if not payload.content or not payload.content.strip():
        raise ValueError("Prompt content must not be empty.")

    record = {
        "id": payload.id or f"prm_{uuid.uuid4().hex[:12]}",
        "title": (payload.title or "").strip() or _default_title(prompt_type),
        "content": payload.content,
        "prompt_type": prompt_type.value,
        "created_at": payload.createdAt or int(time.time() * 1000),
        "is_favorite": payload.isFavorite,
    }
    db.upsert_prompt(record)
    logger.info("Saved %s prompt %s", prompt_type.value, record["id"])
    return list_prompts(db, prompt_type)


def delete_prompt(db: DatabaseService, prompt_type: PromptType, prompt_id: str) -> List[SavedPrompt]:
    db.delete_prompt(prompt_id, prompt_type.value)
    return list_prompts(db, prompt_type)


def rename_prompt(db: DatabaseService, prompt_type: PromptType, prompt_id: str, title: str) -> List[SavedPrompt]:
    """Renames a prompt. Unknown ids are ignored; blank titles are rejected."""
    new_title = (title or "").strip()
    if not new_title:
        raise ValueError("Title must not be empty.")
    db.update_prompt(prompt_id, prompt_type.value, {"title": new_title})
    return list_prompts(db, prompt_type)


def toggle_prompt_favorite(db: DatabaseService, prompt_type: PromptType, prompt_id: str) -> List[SavedPrompt]:
    existing = db.get_prompt(prompt_id, prompt_type.value)
    if existing is not None:
        db.update_prompt(prompt_id, prompt_type.value, {"is_favorite": not existing.is_favorite})
    return list_prompts(db, prompt_type)
