# /app/models/workbench_model.py

"""
Value objects shared by the run engine, the history store and the API.

Wire names follow the browser client: snake_case generation parameters,
camelCase for `outputCount`.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from ..core.config import DEFAULT_MODEL


# --- Enumerations ---
class ThinkingType(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class SlotStatus(str, Enum):
    PENDING = "pending"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (SlotStatus.COMPLETED, SlotStatus.ERRORED)


class MessageRole(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# --- Generation Parameters ---
class ThinkingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: ThinkingType = ThinkingType.ENABLED


class GenerationConfig(BaseModel):
    """
    One immutable snapshot of the generation parameters. A batch keeps the
    snapshot it was started with; later batches may use a different one.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    model: str = DEFAULT_MODEL
    temperature: float = Field(1.0, ge=0.0, le=2.0)
    frequency_penalty: float = Field(0.0, ge=-2.0, le=2.0)
    presence_penalty: float = Field(0.0, ge=-2.0, le=2.0)
    thinking: ThinkingConfig = Field(default_factory=ThinkingConfig)
    output_count: int = Field(4, ge=1, le=20, alias="outputCount")


class Message(BaseModel):
    role: MessageRole
    content: str


class SlotResult(BaseModel):
    """The serialized form of one generation slot."""
    id: int = Field(..., ge=0, description="The slot index within its batch.")
    content: str = ""
    status: SlotStatus = SlotStatus.PENDING
    error: Optional[str] = None
    duration: Optional[int] = Field(None, description="Milliseconds from request start to the terminal state.")


def build_messages(system_prompt: str, user_prompt: str) -> List[Message]:
    """The exact message list sent for every slot of a batch."""
    return [
        Message(role=MessageRole.SYSTEM, content=system_prompt),
        Message(role=MessageRole.USER, content=user_prompt),
    ]
