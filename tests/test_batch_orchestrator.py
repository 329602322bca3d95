# /tests/test_batch_orchestrator.py

import asyncio
from unittest.mock import MagicMock

import httpx
import pytest

from app.models.run_model import OrchestratorState
from app.models.workbench_model import GenerationConfig, SlotStatus
from app.services.completion_client import CompletionClient, StreamOutcome
from app.services.run_service import BatchOrchestrator, stream_snapshots

from conftest import HANG, ScriptedClient


def _orchestrator(client, committer):
    return BatchOrchestrator(client=client, committer=committer, stagger_seconds=0)


async def _wait_until(predicate, timeout=2.0):
    async def poll():
        while not predicate():
            await asyncio.sleep(0.001)
    await asyncio.wait_for(poll(), timeout=timeout)


@pytest.mark.asyncio
@pytest.mark.parametrize("output_count", [1, 5, 20])
async def test_batch_fills_every_slot_and_records_once(output_count, committer, recording_store):
    client = ScriptedClient(default=(["same ", "answer"], StreamOutcome.completed()))
    orchestrator = _orchestrator(client, committer)

    record = await orchestrator.run("sys", "usr", GenerationConfig(outputCount=output_count))

    assert len(client.calls) == output_count
    assert record is not None
    assert [r.id for r in record.results] == list(range(output_count))
    assert all(r.status is SlotStatus.COMPLETED and r.content == "same answer" for r in record.results)
    assert recording_store.insert_calls == 1
    assert orchestrator.state is OrchestratorState.IDLE


@pytest.mark.asyncio
async def test_every_slot_sends_the_same_messages_and_config(committer):
    client = ScriptedClient()
    config = GenerationConfig(outputCount=3, temperature=0.2)
    orchestrator = _orchestrator(client, committer)

    await orchestrator.run("Be brief.", "Name a colour.", config, credential="sk-run")

    first = client.calls[0]
    assert [m.content for m in first["messages"]] == ["Be brief.", "Name a colour."]
    assert all(call["messages"] == first["messages"] for call in client.calls)
    assert all(call["config"] is config and call["credential"] == "sk-run" for call in client.calls)


@pytest.mark.asyncio
async def test_one_failing_slot_does_not_affect_its_siblings(committer, recording_store):
    client = ScriptedClient([
        ([], StreamOutcome.errored("HTTP 429")),
        (["OK"], StreamOutcome.completed()),
    ])
    orchestrator = _orchestrator(client, committer)

    record = await orchestrator.run("sys", "hello", GenerationConfig(outputCount=2))

    assert record.results[0].status is SlotStatus.ERRORED
    assert record.results[0].error == "HTTP 429"
    assert record.results[1].status is SlotStatus.COMPLETED
    assert record.results[1].content == "OK"
    assert recording_store.insert_calls == 1


@pytest.mark.asyncio
async def test_empty_prompts_do_nothing(committer, recording_store):
    client = ScriptedClient()
    orchestrator = _orchestrator(client, committer)

    assert orchestrator.start("  ", "", GenerationConfig()) is None
    assert await orchestrator.run("", "", GenerationConfig()) is None

    assert orchestrator.state is OrchestratorState.IDLE
    assert orchestrator.batch is None
    assert client.calls == []
    assert recording_store.insert_calls == 0


@pytest.mark.asyncio
async def test_user_prompt_alone_is_enough(committer):
    orchestrator = _orchestrator(ScriptedClient(), committer)

    record = await orchestrator.run("", "only the user speaks", GenerationConfig(outputCount=1))

    assert record is not None
    assert record.systemPrompt == ""


@pytest.mark.asyncio
async def test_abort_when_idle_is_a_no_op(committer):
    orchestrator = _orchestrator(ScriptedClient(), committer)

    assert orchestrator.abort() is False
    assert orchestrator.snapshot() is None


@pytest.mark.asyncio
async def test_second_start_while_running_is_rejected(committer, recording_store):
    client = ScriptedClient(default=([], HANG))
    orchestrator = _orchestrator(client, committer)

    first = orchestrator.start("sys", "usr", GenerationConfig(outputCount=2))
    second = orchestrator.start("other", "prompt", GenerationConfig(outputCount=5))

    assert first is not None
    assert second is None
    assert orchestrator.batch is first

    await _wait_until(lambda: len(client.calls) == 2)
    orchestrator.abort()
    await orchestrator.wait()
    assert len(client.calls) == 2
    assert recording_store.insert_calls == 1


@pytest.mark.asyncio
async def test_abort_mid_stream_keeps_partial_content(committer, recording_store):
    client = ScriptedClient(default=(["partial"], HANG))
    orchestrator = _orchestrator(client, committer)
    batch = orchestrator.start("sys", "usr", GenerationConfig(outputCount=3))

    await _wait_until(lambda: all(slot.content == "partial" for slot in batch.aggregate))
    assert orchestrator.state is OrchestratorState.RUNNING
    assert orchestrator.abort() is True
    assert orchestrator.abort() is True
    record = await asyncio.wait_for(orchestrator.wait(), timeout=2)

    assert orchestrator.state is OrchestratorState.IDLE
    assert all(r.status is SlotStatus.COMPLETED and r.content == "partial" for r in record.results)
    assert recording_store.insert_calls == 1


@pytest.mark.asyncio
async def test_abort_before_stagger_elapses_skips_later_slots(committer):
    client = ScriptedClient(default=([], HANG))
    orchestrator = BatchOrchestrator(client=client, committer=committer, stagger_seconds=5)
    orchestrator.start("sys", "usr", GenerationConfig(outputCount=4))

    await _wait_until(lambda: len(client.calls) == 1)
    orchestrator.abort()
    record = await asyncio.wait_for(orchestrator.wait(), timeout=2)

    assert len(client.calls) == 1
    assert all(r.status is SlotStatus.COMPLETED for r in record.results)


@pytest.mark.asyncio
async def test_finalization_happens_once_per_batch(committer, recording_store):
    orchestrator = _orchestrator(ScriptedClient(), committer)
    await orchestrator.run("sys", "usr", GenerationConfig(outputCount=2))
    batch = orchestrator.batch

    orchestrator._finalize(batch, orchestrator._latch)

    assert recording_store.insert_calls == 1
    assert orchestrator.state is OrchestratorState.IDLE


@pytest.mark.asyncio
async def test_consecutive_batches_each_get_their_own_record(committer, recording_store):
    orchestrator = _orchestrator(ScriptedClient(), committer)

    first = await orchestrator.run("sys", "one", GenerationConfig(outputCount=1))
    second = await orchestrator.run("sys", "two", GenerationConfig(outputCount=2))

    assert first.id != second.id
    assert len(second.results) == 2
    assert recording_store.insert_calls == 2


@pytest.mark.asyncio
async def test_missing_credential_errors_every_slot(committer, recording_store, monkeypatch):
    monkeypatch.delenv("ARK_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)

    def handler(request):
        pytest.fail("no request should be sent without a credential")

    client = CompletionClient(
        api_url="https://llm.test/v1/chat/completions",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )
    orchestrator = _orchestrator(client, committer)

    record = await orchestrator.run("sys", "usr", GenerationConfig(outputCount=3), credential="")

    assert all(r.status is SlotStatus.ERRORED for r in record.results)
    assert all(r.error == "Missing API Key. Please configure it in settings." for r in record.results)
    assert recording_store.insert_calls == 1


@pytest.mark.asyncio
async def test_snapshot_stream_ends_with_the_finalized_batch(committer):
    client = ScriptedClient(default=(["a", "b"], StreamOutcome.completed()))
    orchestrator = _orchestrator(client, committer)
    orchestrator.start("sys", "usr", GenerationConfig(outputCount=2))

    snapshots = [s async for s in stream_snapshots(orchestrator, poll_interval=0.001)]

    assert snapshots
    assert snapshots[-1].state is OrchestratorState.IDLE
    assert [r.content for r in snapshots[-1].results] == ["ab", "ab"]


@pytest.mark.asyncio
async def test_shutdown_aborts_and_closes_the_client(committer, recording_store):
    client = ScriptedClient(default=([], HANG))
    orchestrator = _orchestrator(client, committer)
    orchestrator.start("sys", "usr", GenerationConfig(outputCount=2))
    await _wait_until(lambda: len(client.calls) == 2)

    await asyncio.wait_for(orchestrator.shutdown(), timeout=2)

    assert client.closed is True
    assert orchestrator.state is OrchestratorState.IDLE
    assert recording_store.insert_calls == 1


@pytest.mark.asyncio
async def test_committer_sees_only_terminal_slots():
    committer = MagicMock()
    committer.commit.return_value = None
    client = ScriptedClient([(["half"], StreamOutcome.cancelled())])
    orchestrator = _orchestrator(client, committer)

    assert await orchestrator.run("sys", "usr", GenerationConfig(outputCount=1)) is None

    committer.commit.assert_called_once()
    (batch,), _ = committer.commit.call_args
    assert batch is orchestrator.batch
    assert batch.aggregate.all_terminal


@pytest.mark.asyncio
async def test_snapshot_stream_finishes_its_batch_when_the_next_one_starts_quickly(committer):
    client = ScriptedClient([(["first"], StreamOutcome.completed())], default=([], HANG))
    orchestrator = _orchestrator(client, committer)
    first = orchestrator.start("sys", "one", GenerationConfig(outputCount=1))

    async def collect():
        return [s async for s in stream_snapshots(orchestrator, poll_interval=0.05)]

    subscriber = asyncio.ensure_future(collect())
    await asyncio.sleep(0)
    await orchestrator.wait()
    second = orchestrator.start("sys", "two", GenerationConfig(outputCount=1))
    frames = await asyncio.wait_for(subscriber, timeout=2)

    assert second is not None
    assert all(frame.id == first.id for frame in frames)
    assert frames[-1].state is OrchestratorState.IDLE
    assert frames[-1].results[0].status is SlotStatus.COMPLETED
    assert frames[-1].results[0].content == "first"

    orchestrator.abort()
    await orchestrator.wait()


class AbortOnLastCompletionClient(ScriptedClient):
    """Calls abort() in the same tick the last slot reports completion."""

    def __init__(self, output_count):
        super().__init__()
        self.output_count = output_count
        self.completions = 0
        self.orchestrator = None

    async def stream_completion(self, messages, gen_config, credential, token, on_token):
        outcome = await super().stream_completion(messages, gen_config, credential, token, on_token)
        self.completions += 1
        if self.completions == self.output_count:
            self.orchestrator.abort()
        return outcome


@pytest.mark.asyncio
async def test_abort_racing_the_last_completion_still_records_once(committer, recording_store):
    client = AbortOnLastCompletionClient(output_count=3)
    orchestrator = _orchestrator(client, committer)
    client.orchestrator = orchestrator

    orchestrator.start("sys", "usr", GenerationConfig(outputCount=3))
    await _wait_until(lambda: len(client.calls) == 3)
    record = await asyncio.wait_for(orchestrator.wait(), timeout=2)

    assert orchestrator.abort() is False
    assert recording_store.insert_calls == 1
    assert all(r.status.is_terminal for r in record.results)
    assert orchestrator.batch.aggregate.all_terminal


@pytest.mark.asyncio
async def test_abort_right_after_start_still_records_once(committer, recording_store):
    client = ScriptedClient()
    orchestrator = _orchestrator(client, committer)

    orchestrator.start("sys", "usr", GenerationConfig(outputCount=4))
    assert orchestrator.abort() is True
    record = await asyncio.wait_for(orchestrator.wait(), timeout=2)
    assert orchestrator.abort() is False

    assert client.calls == []
    assert recording_store.insert_calls == 1
    assert all(r.status is SlotStatus.COMPLETED for r in record.results)


@pytest.mark.asyncio
async def test_unexpected_commit_failure_is_logged_without_a_waiter(caplog):
    committer = MagicMock()
    committer.commit.side_effect = RuntimeError("record did not validate")
    orchestrator = _orchestrator(ScriptedClient(), committer)

    batch = orchestrator.start("sys", "usr", GenerationConfig(outputCount=1))
    await _wait_until(lambda: orchestrator._task.done())
    await asyncio.sleep(0)

    assert orchestrator.state is OrchestratorState.IDLE
    assert f"Batch {batch.id} failed during finalization" in caplog.text
    assert "record did not validate" in caplog.text
