# /app/models/prompt_model.py

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class PromptType(str, Enum):
    SYSTEM = "system"
    USER = "user"


class SavedPrompt(BaseModel):
    """A reusable system or user prompt as returned by the API."""
    id: str
    title: str
    content: str
    type: PromptType
    createdAt: int = Field(..., description="Creation time in epoch milliseconds.")
    isFavorite: bool = False


class SavedPromptCreate(BaseModel):
    """
    Payload for saving a prompt. Posting an existing id updates that
    prompt's title, content and favorite flag in place.
    """
    id: Optional[str] = None
    title: Optional[str] = None
    content: str
    createdAt: Optional[int] = None
    isFavorite: bool = False


class TitleUpdate(BaseModel):
    title: str
