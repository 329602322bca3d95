# /app/models/run_model.py

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from .workbench_model import GenerationConfig, Message, SlotResult


class OrchestratorState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINALIZING = "finalizing"


class RunRequest(BaseModel):
    """Request body for starting a batch."""
    systemPrompt: str = ""
    userPrompt: str = ""
    config: GenerationConfig = Field(default_factory=GenerationConfig)
    apiKey: Optional[str] = Field(None, description="Overrides the stored credential for this batch only.")


class PayloadRequest(BaseModel):
    systemPrompt: str = ""
    userPrompt: str = ""


class PayloadPreview(BaseModel):
    messages: List[Message]


class RunSnapshot(BaseModel):
    """Point-in-time view of the current (or most recent) batch."""
    id: str
    state: OrchestratorState
    timestamp: int
    systemPrompt: str
    userPrompt: str
    config: GenerationConfig
    results: List[SlotResult]


class AbortResponse(BaseModel):
    aborted: bool
