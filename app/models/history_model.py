# /app/models/history_model.py

from typing import List

from pydantic import BaseModel, Field, field_validator

from .workbench_model import GenerationConfig, SlotResult, SlotStatus


class HistoryRecord(BaseModel):
    """
    One finished batch. Immutable once written except for `isFavorite`.
    Slot statuses are always terminal: anything still pending or streaming
    is recorded as completed.
    """
    id: str
    timestamp: int = Field(..., description="Creation time in epoch milliseconds.")
    systemPrompt: str
    userPrompt: str
    config: GenerationConfig
    results: List[SlotResult]
    isFavorite: bool = False

    @field_validator("results")
    @classmethod
    def _coerce_terminal_statuses(cls, results: List[SlotResult]) -> List[SlotResult]:
        return [
            r if r.status.is_terminal else r.model_copy(update={"status": SlotStatus.COMPLETED})
            for r in results
        ]


class HistorySaveResponse(BaseModel):
    success: bool = True
    created: bool
