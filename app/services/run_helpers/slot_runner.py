# /app/services/run_helpers/slot_runner.py

import logging
import time
from typing import List, Optional

from app.models.workbench_model import GenerationConfig, Message
from ..completion_client import CompletionClient, OutcomeKind
from .cancellation import CancellationToken
from .result_aggregate import GenerationSlot, ResultAggregate

logger = logging.getLogger(__name__)


class SlotRunner:
    """
    Drives one slot from Pending to a terminal status.

    Slot N waits N x stagger before sending its request so that a batch does
    not fire byte-identical requests in the same millisecond. The wait is
    cancellable: an aborted batch never reaches the network for slots still
    waiting. `run()` always returns normally, exactly once.
    """

    def __init__(
        self,
        slot_index: int,
        aggregate: ResultAggregate,
        client: CompletionClient,
        messages: List[Message],
        gen_config: GenerationConfig,
        credential: Optional[str],
        token: CancellationToken,
        stagger_seconds: float,
    ):
        self.slot_index = slot_index
        self.aggregate = aggregate
        self.client = client
        self.messages = messages
        self.gen_config = gen_config
        self.credential = credential
        self.token = token
        self.stagger_seconds = stagger_seconds
        self._started = False

    def _on_token(self, text: str) -> None:
        if self.token.is_cancelled:
            return
        self.aggregate.append(self.slot_index, text)

    async def run(self) -> GenerationSlot:
        if self._started:
            return self.aggregate[self.slot_index]
        self._started = True

        if await self.token.sleep(self.slot_index * self.stagger_seconds):
            self.aggregate.complete(self.slot_index)
            return self.aggregate[self.slot_index]

        started = time.monotonic()
        try:
            outcome = await self.client.stream_completion(
                self.messages, self.gen_config, self.credential, self.token, self._on_token
            )
        except Exception as e:
            logger.exception("Slot %d crashed", self.slot_index)
            self.aggregate.fail(self.slot_index, str(e) or "Unknown error occurred", self._elapsed_ms(started))
            return self.aggregate[self.slot_index]

        # An error that lands after abort is reported like the abort itself.
        if outcome.kind is OutcomeKind.ERRORED and not self.token.is_cancelled:
            logger.warning("Slot %d errored: %s", self.slot_index, outcome.error)
            self.aggregate.fail(self.slot_index, outcome.error, self._elapsed_ms(started))
        else:
            self.aggregate.complete(self.slot_index, self._elapsed_ms(started))
        return self.aggregate[self.slot_index]

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)
