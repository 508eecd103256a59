"""Bounded-concurrency batch execution of chunk processing.

Chunks run in fixed-width batches. Members of a batch run concurrently and the
batch completes only when every member has an outcome; the next batch starts
after a fixed delay so the remote service is not flooded.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import dataclasses
import logging
from typing import TYPE_CHECKING

from gemini_extract.constants import BATCH_DELAY_SECONDS, BATCH_WIDTH
from gemini_extract.core.types import Chunk, ChunkOutcome
from gemini_extract.telemetry import TelemetryContext

if TYPE_CHECKING:
    from gemini_extract.pipeline.retry import RetryingChunkProcessor
    from gemini_extract.telemetry import Telemetry

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
ProgressCallback = Callable[["BatchProgress"], None]

T_BATCH = "extract.batch"


@dataclasses.dataclass(frozen=True, slots=True)
class BatchProgress:
    """Running counters after a completed batch."""

    batch_index: int
    batch_count: int
    processed: int
    succeeded: int
    failed: int
    total: int

    @property
    def percent_complete(self) -> float:
        return (self.processed / self.total * 100) if self.total else 100.0


class BatchScheduler:
    """Runs every planned chunk through the processor, batch by batch."""

    def __init__(
        self,
        processor: RetryingChunkProcessor,
        *,
        width: int = BATCH_WIDTH,
        delay_seconds: float = BATCH_DELAY_SECONDS,
        sleep: Sleep | None = None,
        on_progress: ProgressCallback | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        if width < 1:
            raise ValueError(f"width must be >= 1, got {width}")
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.processor = processor
        self.width = width
        self.delay_seconds = delay_seconds
        self._sleep: Sleep = sleep or asyncio.sleep
        self._on_progress = on_progress
        self._telemetry: Telemetry = telemetry or TelemetryContext()

    def batches(self, chunks: Sequence[Chunk]) -> list[Sequence[Chunk]]:
        return [
            chunks[start : start + self.width]
            for start in range(0, len(chunks), self.width)
        ]

    async def run_all(
        self, chunks: Sequence[Chunk], mime_type: str | None
    ) -> tuple[ChunkOutcome, ...]:
        """Process every chunk; outcomes come back ordered by ordinal."""
        batches = self.batches(chunks)
        outcomes: list[ChunkOutcome] = []
        succeeded = failed = 0

        for index, batch in enumerate(batches, start=1):
            log.info(
                "Processing batch %d/%d (chunks %d-%d of %d)",
                index,
                len(batches),
                batch[0].ordinal,
                batch[-1].ordinal,
                len(chunks),
            )
            with self._telemetry(T_BATCH, batch=index, size=len(batch)):
                results = await asyncio.gather(
                    *(self.processor.process(chunk, mime_type) for chunk in batch),
                    return_exceptions=True,
                )

            for chunk, result in zip(batch, results, strict=True):
                if isinstance(result, ChunkOutcome):
                    outcome = result
                elif isinstance(result, Exception):
                    log.error(
                        "Unexpected error processing chunk %d: %s",
                        chunk.ordinal,
                        result,
                        exc_info=result,
                    )
                    outcome = ChunkOutcome.failed(
                        chunk.ordinal, f"Unexpected error: {result}"
                    )
                else:
                    # CancelledError and other BaseExceptions are not ours to absorb
                    raise result
                outcomes.append(outcome)
                if outcome.succeeded:
                    succeeded += 1
                else:
                    failed += 1

            progress = BatchProgress(
                batch_index=index,
                batch_count=len(batches),
                processed=len(outcomes),
                succeeded=succeeded,
                failed=failed,
                total=len(chunks),
            )
            log.info(
                "Progress: %d/%d chunks (%.1f%%), %d succeeded, %d failed",
                progress.processed,
                progress.total,
                progress.percent_complete,
                succeeded,
                failed,
            )
            if self._on_progress is not None:
                self._on_progress(progress)

            if index < len(batches) and self.delay_seconds > 0:
                await self._sleep(self.delay_seconds)

        return tuple(sorted(outcomes, key=lambda o: o.ordinal))
