# /app/services/run_helpers/cancellation.py

import asyncio
from typing import Awaitable


class CancellationToken:
    """
    Batch-wide, level-triggered cancellation signal.

    Written once by the orchestrator's abort(); read by every slot at each
    suspension point. Being cancelled is never an error: the helpers below
    report it as a plain boolean so callers can finish normally.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()

    async def sleep(self, seconds: float) -> bool:
        """Sleeps up to `seconds`. Returns True if the token fired first."""
        if self.is_cancelled:
            return True
        if seconds <= 0:
            return False
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def run(self, awaitable: Awaitable) -> bool:
        """
        Runs `awaitable` until it finishes or the token fires, whichever is
        first. Returns True when it finished and False when it was cut short.
        Exceptions from the awaitable propagate unchanged.
        """
        if self.is_cancelled:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            return False

        work = asyncio.ensure_future(awaitable)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            work.cancel()
            raise
        finally:
            waiter.cancel()

        if work in done:
            work.result()
            return True

        work.cancel()
        # asyncio.wait never raises the work's CancelledError, so a
        # cancellation of the calling task still propagates from here.
        await asyncio.wait({work})
        if not work.cancelled():
            work.result()
        return False
