from conftest import VALID_KEY, FakeClientFactory, SleepRecorder
import pytest

from gemini_extract.core.types import Chunk
from gemini_extract.exceptions import ClientInitError
from gemini_extract.pipeline import (
    ClientHandle,
    RemoteExtractor,
    RetryingChunkProcessor,
    RetryPolicy,
)
from gemini_extract.telemetry import MemoryReporter, TelemetryContext

pytestmark = pytest.mark.unit


def _chunk(ordinal=1, total=1):
    return Chunk(ordinal=ordinal, total=total, data=memoryview(b"payload"))


def _processor(behavior, *, api_key=VALID_KEY, policy=None, telemetry=None):
    factory = FakeClientFactory(behavior)
    extractor = RemoteExtractor(ClientHandle(api_key, factory))
    sleep = SleepRecorder()
    processor = RetryingChunkProcessor(
        extractor, policy, sleep=sleep, telemetry=telemetry
    )
    return processor, factory, sleep


# --- Decision table ---


def test_backoff_is_exponential():
    policy = RetryPolicy()
    assert [policy.backoff_for(n) for n in (1, 2, 3)] == [2.0, 4.0, 8.0]


def test_transient_errors_force_reinit():
    policy = RetryPolicy()
    for message in ("Request timed out", "429 Too Many Requests", "Network error"):
        decision = policy.decide(1, RuntimeError(message))
        assert decision.retry
        assert decision.force_reinit


def test_other_errors_retry_without_reinit():
    decision = RetryPolicy().decide(1, ValueError("bad request payload"))
    assert decision.retry
    assert not decision.force_reinit
    assert decision.backoff_seconds == 2.0


def test_final_attempt_stops():
    assert not RetryPolicy().decide(3, RuntimeError("timeout")).retry


def test_client_init_error_is_fatal():
    assert not RetryPolicy().decide(1, ClientInitError("no key")).retry


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)


# --- Processor ---


@pytest.mark.asyncio
async def test_first_try_success():
    processor, factory, sleep = _processor(lambda n, call: "hello")

    outcome = await processor.process(_chunk(), "application/pdf")

    assert outcome.succeeded
    assert outcome.text == "hello"
    assert outcome.attempts == 1
    assert sleep.delays == []
    assert len(factory.models.calls) == 1


@pytest.mark.asyncio
async def test_persistent_failure_makes_exactly_three_attempts():
    processor, factory, sleep = _processor(lambda n, call: ValueError("boom"))

    outcome = await processor.process(_chunk(2, 4), "application/pdf")

    assert not outcome.succeeded
    assert outcome.ordinal == 2
    assert outcome.text == ""
    assert outcome.error_reason == "boom"
    assert outcome.attempts == 3
    assert len(factory.models.calls) == 3
    assert sleep.delays == [2.0, 4.0]


@pytest.mark.asyncio
async def test_recovers_after_transient_error_with_fresh_client():
    def behavior(n, call):
        return TimeoutError("deadline exceeded") if n == 1 else "recovered"

    processor, factory, sleep = _processor(behavior)

    outcome = await processor.process(_chunk(), "audio/mpeg")

    assert outcome.succeeded
    assert outcome.text == "recovered"
    assert outcome.attempts == 2
    assert sleep.delays == [2.0]
    assert factory.created == 2


@pytest.mark.asyncio
async def test_non_transient_error_keeps_client():
    def behavior(n, call):
        return ValueError("invalid argument") if n == 1 else "ok"

    processor, factory, _ = _processor(behavior)

    outcome = await processor.process(_chunk(), "audio/mpeg")

    assert outcome.succeeded
    assert factory.created == 1


@pytest.mark.asyncio
async def test_client_init_failure_is_not_retried():
    processor, factory, sleep = _processor(lambda n, call: "never", api_key=None)

    outcome = await processor.process(_chunk(), "application/pdf")

    assert not outcome.succeeded
    assert outcome.attempts == 1
    assert "API key" in outcome.error_reason
    assert sleep.delays == []
    assert factory.models.calls == []


@pytest.mark.asyncio
async def test_custom_policy_limits_attempts():
    processor, factory, sleep = _processor(
        lambda n, call: RuntimeError("nope"),
        policy=RetryPolicy(max_attempts=2, backoff_base_seconds=3.0),
    )

    outcome = await processor.process(_chunk(), None)

    assert outcome.attempts == 2
    assert sleep.delays == [3.0]


@pytest.mark.asyncio
async def test_retries_and_failures_are_counted():
    reporter = MemoryReporter()
    processor, _, _ = _processor(
        lambda n, call: RuntimeError("connection reset"),
        telemetry=TelemetryContext(reporter),
    )

    await processor.process(_chunk(), None)

    assert reporter.total("extract.chunk.chunk.retry") == 2
    assert reporter.total("extract.chunk.chunk.failed") == 1
    assert len(reporter.timings["extract.chunk"]) == 1
