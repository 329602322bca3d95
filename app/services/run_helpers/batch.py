# /app/services/run_helpers/batch.py

import time
import uuid
from dataclasses import dataclass, field
from typing import List

from app.models.history_model import HistoryRecord
from app.models.workbench_model import GenerationConfig, Message, build_messages
from .result_aggregate import ResultAggregate


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class Batch:
    """One user-initiated run: a prompt pair, a config snapshot and its slots."""
    id: str
    system_prompt: str
    user_prompt: str
    config: GenerationConfig
    aggregate: ResultAggregate
    created_at: int = field(default_factory=_now_ms)

    @classmethod
    def create(cls, system_prompt: str, user_prompt: str, config: GenerationConfig) -> "Batch":
        return cls(
            id=f"run_{uuid.uuid4().hex[:16]}",
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            config=config,
            aggregate=ResultAggregate(config.output_count),
        )

    @property
    def messages(self) -> List[Message]:
        return build_messages(self.system_prompt, self.user_prompt)

    def to_history_record(self) -> HistoryRecord:
        return HistoryRecord(
            id=self.id,
            timestamp=self.created_at,
            systemPrompt=self.system_prompt,
            userPrompt=self.user_prompt,
            config=self.config,
            results=self.aggregate.snapshot(),
        )
