# /app/models/settings_model.py

from typing import Optional

from pydantic import BaseModel

from ..core.config import DEFAULT_MODEL


class ApiKeyPayload(BaseModel):
    apiKey: str = ""


class SuccessResponse(BaseModel):
    success: bool = True


class VerifyRequest(BaseModel):
    """Credential and model pair to check before running batches."""
    apiKey: Optional[str] = None
    model: str = DEFAULT_MODEL


class VerifyResponse(BaseModel):
    success: bool
    message: str
