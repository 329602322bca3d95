# /app/services/run_helpers/result_aggregate.py

from dataclasses import dataclass, replace
from typing import Iterator, List, Optional

from app.models.workbench_model import SlotResult, SlotStatus


@dataclass(frozen=True)
class GenerationSlot:
    slot_index: int
    content: str = ""
    status: SlotStatus = SlotStatus.PENDING
    error_message: Optional[str] = None
    duration_ms: Optional[int] = None

    def to_result(self) -> SlotResult:
        return SlotResult(
            id=self.slot_index,
            content=self.content,
            status=self.status,
            error=self.error_message,
            duration=self.duration_ms,
        )


class ResultAggregate:
    """
    The per-batch collection of slots, ordered by slot index.

    Each slot is written only by its own SlotRunner, and every write replaces
    the slot record at its index without awaiting, so readers may take a
    snapshot at any time without locking. Once a slot is terminal it no
    longer changes.
    """

    def __init__(self, output_count: int):
        if output_count < 1:
            raise ValueError("A batch needs at least one slot.")
        self._slots: List[GenerationSlot] = [GenerationSlot(slot_index=i) for i in range(output_count)]
        # Bumped on every mutation so observers can tell when to re-render.
        self.version = 0

    def __len__(self) -> int:
        return len(self._slots)

    def __iter__(self) -> Iterator[GenerationSlot]:
        return iter(list(self._slots))

    def __getitem__(self, slot_index: int) -> GenerationSlot:
        return self._slots[slot_index]

    def _replace(self, slot_index: int, **changes) -> None:
        self._slots[slot_index] = replace(self._slots[slot_index], **changes)
        self.version += 1

    def append(self, slot_index: int, text: str) -> None:
        slot = self._slots[slot_index]
        if slot.status.is_terminal:
            return
        self._replace(slot_index, content=slot.content + text, status=SlotStatus.STREAMING)

    def complete(self, slot_index: int, duration_ms: Optional[int] = None) -> None:
        if self._slots[slot_index].status.is_terminal:
            return
        self._replace(slot_index, status=SlotStatus.COMPLETED, duration_ms=duration_ms)

    def fail(self, slot_index: int, message: str, duration_ms: Optional[int] = None) -> None:
        if self._slots[slot_index].status.is_terminal:
            return
        self._replace(slot_index, status=SlotStatus.ERRORED, error_message=message, duration_ms=duration_ms)

    @property
    def all_terminal(self) -> bool:
        return all(slot.status.is_terminal for slot in self._slots)

    def finalize(self) -> List[SlotResult]:
        """
        Ends the batch: any slot still pending or streaming becomes completed
        (a batch that ended is not a slot that failed).
        """
        for slot in list(self._slots):
            if not slot.status.is_terminal:
                self._replace(slot.slot_index, status=SlotStatus.COMPLETED)
        return self.snapshot()

    def snapshot(self) -> List[SlotResult]:
        return [slot.to_result() for slot in list(self._slots)]
