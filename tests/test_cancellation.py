# /tests/test_cancellation.py

import asyncio

import pytest

from app.services.run_helpers.cancellation import CancellationToken


@pytest.mark.asyncio
async def test_sleep_reports_whether_the_token_fired():
    token = CancellationToken()
    assert await token.sleep(0) is False
    assert await token.sleep(0.001) is False

    token.cancel()
    assert token.is_cancelled
    assert await token.sleep(10) is True


@pytest.mark.asyncio
async def test_run_returns_true_when_the_work_finishes():
    token = CancellationToken()

    async def work():
        await asyncio.sleep(0)
        return "done"

    assert await token.run(work()) is True


@pytest.mark.asyncio
async def test_run_propagates_errors_from_the_work():
    async def work():
        raise ValueError("bad frame")

    with pytest.raises(ValueError):
        await CancellationToken().run(work())


@pytest.mark.asyncio
async def test_run_cuts_hanging_work_short():
    token = CancellationToken()
    stopped = asyncio.Event()

    async def hang():
        try:
            await asyncio.Event().wait()
        finally:
            stopped.set()

    runner = asyncio.ensure_future(token.run(hang()))
    await asyncio.sleep(0)
    token.cancel()

    assert await asyncio.wait_for(runner, timeout=2) is False
    assert stopped.is_set()


@pytest.mark.asyncio
async def test_run_on_a_fired_token_never_starts_the_work():
    token = CancellationToken()
    token.cancel()
    started = []

    async def work():
        started.append(True)

    assert await token.run(work()) is False
    assert started == []


@pytest.mark.asyncio
async def test_cancelling_the_caller_while_the_work_unwinds_is_not_swallowed():
    token = CancellationToken()
    unwinding = asyncio.Event()
    stopped = asyncio.Event()

    async def slow_to_stop():
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            unwinding.set()
            await asyncio.sleep(0.05)
            raise
        finally:
            stopped.set()

    caller = asyncio.ensure_future(token.run(slow_to_stop()))
    await asyncio.sleep(0)
    token.cancel()
    await asyncio.wait_for(unwinding.wait(), timeout=2)
    caller.cancel()

    with pytest.raises(asyncio.CancelledError):
        await caller
    assert caller.cancelled()
    await asyncio.wait_for(stopped.wait(), timeout=2)
