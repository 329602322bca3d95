# /app/services/run_service.py

"""
The batch orchestrator: fans one prompt pair out into N concurrently
streamed completions and records the batch in history exactly once.

State machine: IDLE -> RUNNING -> FINALIZING -> IDLE. Only one batch runs
at a time; a start() while a batch is active is rejected and leaves the
running batch untouched.
"""

import asyncio
import functools
import logging
from typing import AsyncIterator, List, Optional

from ..core.config import SLOT_STAGGER_MS
from ..models.history_model import HistoryRecord
from ..models.run_model import OrchestratorState, RunSnapshot
from ..models.workbench_model import GenerationConfig
from .completion_client import CompletionClient
from .run_helpers.batch import Batch
from .run_helpers.cancellation import CancellationToken
from .run_helpers.history_committer import FinalizationLatch, HistoryCommitter
from .run_helpers.slot_runner import SlotRunner

logger = logging.getLogger(__name__)


class BatchOrchestrator:
    def __init__(
        self,
        client: Optional[CompletionClient] = None,
        committer: Optional[HistoryCommitter] = None,
        stagger_seconds: float = SLOT_STAGGER_MS / 1000,
    ):
        self.client = client or CompletionClient()
        self.committer = committer or HistoryCommitter()
        self.stagger_seconds = stagger_seconds

        self.state = OrchestratorState.IDLE
        self.batch: Optional[Batch] = None
        self.last_record: Optional[HistoryRecord] = None
        self._token: Optional[CancellationToken] = None
        self._latch: Optional[FinalizationLatch] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def is_running(self) -> bool:
        return self.state is not OrchestratorState.IDLE

    # --- LIFECYCLE ---

    def start(
        self,
        system_prompt: str,
        user_prompt: str,
        config: GenerationConfig,
        credential: Optional[str] = None,
    ) -> Optional[Batch]:
        """
        Allocates the batch, spawns one SlotRunner per slot and returns the
        Batch immediately. Returns None when both prompts are blank or a
        batch is already active. Must be called from a running event loop.
        """
        if not (system_prompt or "").strip() and not (user_prompt or "").strip():
            logger.info("Ignoring start request: both prompts are empty")
            return None
        if self.is_running:
            logger.warning("Ignoring start request: batch %s is still %s", self.batch.id, self.state.value)
            return None

        batch = Batch.create(system_prompt or "", user_prompt or "", config)
        token = CancellationToken()
        latch = FinalizationLatch()
        runners = [
            SlotRunner(
                slot_index=i,
                aggregate=batch.aggregate,
                client=self.client,
                messages=batch.messages,
                gen_config=config,
                credential=credential,
                token=token,
                stagger_seconds=self.stagger_seconds,
            )
            for i in range(config.output_count)
        ]

        self.batch = batch
        self.last_record = None
        self._token = token
        self._latch = latch
        self.state = OrchestratorState.RUNNING
        self._task = asyncio.get_running_loop().create_task(
            self._drive(batch, runners, latch), name=f"batch-{batch.id}"
        )
        self._task.add_done_callback(functools.partial(_log_drive_failure, batch.id))
        logger.info("Started batch %s with %d slots on %s", batch.id, config.output_count, config.model)
        return batch

    async def _drive(self, batch: Batch, runners: List[SlotRunner], latch: FinalizationLatch) -> None:
        try:
            results = await asyncio.gather(*(runner.run() for runner in runners), return_exceptions=True)
            for runner, result in zip(runners, results):
                if isinstance(result, BaseException):
                    logger.error("Slot %d of batch %s ended abnormally: %r", runner.slot_index, batch.id, result)
        finally:
            self._finalize(batch, latch)

    def _finalize(self, batch: Batch, latch: FinalizationLatch) -> None:
        """Coerces residual slot statuses and commits history. Runs once per batch."""
        if not latch.try_acquire():
            return
        self.state = OrchestratorState.FINALIZING
        try:
            batch.aggregate.finalize()
            self.last_record = self.committer.commit(batch)
        finally:
            self.state = OrchestratorState.IDLE
            self._token = None
        logger.info("Finalized batch %s (history recorded: %s)", batch.id, self.last_record is not None)

    def abort(self) -> bool:
        """Signals the running batch to stop. A no-op when nothing is running."""
        if self.state is not OrchestratorState.RUNNING or self._token is None:
            return False
        if not self._token.is_cancelled:
            logger.info("Aborting batch %s", self.batch.id)
        self._token.cancel()
        return True

    async def wait(self) -> Optional[HistoryRecord]:
        """Waits for the current batch to finalize; returns the record it wrote."""
        task = self._task
        if task is not None:
            await asyncio.shield(task)
        return self.last_record

    async def run(
        self,
        system_prompt: str,
        user_prompt: str,
        config: GenerationConfig,
        credential: Optional[str] = None,
    ) -> Optional[HistoryRecord]:
        if self.start(system_prompt, user_prompt, config, credential) is None:
            return None
        return await self.wait()

    async def shutdown(self) -> None:
        self.abort()
        await self.wait()
        await self.client.aclose()

    # --- READ SIDE ---

    def snapshot(self) -> Optional[RunSnapshot]:
        batch = self.batch
        if batch is None:
            return None
        return batch_snapshot(batch, self.state)


def batch_snapshot(batch: Batch, state: OrchestratorState) -> RunSnapshot:
    return RunSnapshot(
        id=batch.id,
        state=state,
        timestamp=batch.created_at,
        systemPrompt=batch.system_prompt,
        userPrompt=batch.user_prompt,
        config=batch.config,
        results=batch.aggregate.snapshot(),
    )


def _log_drive_failure(batch_id: str, task: asyncio.Task) -> None:
    """Done-callback for the batch task: reports errors nobody awaited."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        logger.error("Batch %s failed during finalization", batch_id, exc_info=error)


async def stream_snapshots(orchestrator: BatchOrchestrator, poll_interval: float = 0.1) -> AsyncIterator[RunSnapshot]:
    """
    Yields a snapshot of the batch that is current on entry every time it
    changes, ending with its finalized snapshot. Polling is safe: slot
    writes never await.
    """
    batch = orchestrator.batch
    if batch is None:
        return
    last_seen = None
    while True:
        # The orchestrator only replaces a batch once it has finalized.
        state = orchestrator.state if orchestrator.batch is batch else OrchestratorState.IDLE
        marker = (batch.aggregate.version, state)
        if marker != last_seen:
            last_seen = marker
            yield batch_snapshot(batch, state)
        if state is OrchestratorState.IDLE:
            return
        await asyncio.sleep(poll_interval)


# --- DEPENDENCY PROVIDER ---

_orchestrator: Optional[BatchOrchestrator] = None


def get_orchestrator() -> BatchOrchestrator:
    """FastAPI dependency: the process-wide orchestrator."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = BatchOrchestrator()
    return _orchestrator
