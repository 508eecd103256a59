"""Per-chunk retries with backoff and client re-initialization.

Retry behavior is an explicit transition table (``RetryPolicy.decide``) so it
can be tested without running anything. ``RetryingChunkProcessor`` is the only
place where a chunk is finalized as failed.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import dataclasses
import logging
from typing import TYPE_CHECKING

from gemini_extract.constants import (
    BACKOFF_BASE_SECONDS,
    MAX_CHUNK_ATTEMPTS,
    TRANSIENT_ERROR_MARKERS,
)
from gemini_extract.core.types import Chunk, ChunkOutcome
from gemini_extract.exceptions import ClientInitError
from gemini_extract.telemetry import TelemetryContext

if TYPE_CHECKING:
    from gemini_extract.pipeline.remote_extractor import RemoteExtractor
    from gemini_extract.telemetry import Telemetry

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]

# --- Telemetry scopes/keys ---
T_CHUNK = "extract.chunk"
T_CHUNK_RETRY = "chunk.retry"
T_CHUNK_FAILED = "chunk.failed"


@dataclasses.dataclass(frozen=True, slots=True)
class RetryDecision:
    """What to do after a failed attempt."""

    retry: bool
    backoff_seconds: float = 0.0
    force_reinit: bool = False


@dataclasses.dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Transition table for failed chunk attempts."""

    max_attempts: int = MAX_CHUNK_ATTEMPTS
    backoff_base_seconds: float = BACKOFF_BASE_SECONDS
    transient_markers: tuple[str, ...] = TRANSIENT_ERROR_MARKERS

    def __post_init__(self) -> None:
        """Validate policy bounds."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {self.max_attempts}")
        if self.backoff_base_seconds < 0:
            raise ValueError("backoff_base_seconds must be >= 0")

    def is_transient(self, error: BaseException) -> bool:
        text = str(error).lower()
        return any(marker in text for marker in self.transient_markers)

    def backoff_for(self, attempt: int) -> float:
        """Wait before the attempt after ``attempt``: 2s, then 4s, ..."""
        return float(self.backoff_base_seconds**attempt)

    def decide(self, attempt: int, error: BaseException) -> RetryDecision:
        """Decide what follows failed attempt number ``attempt`` (1-based).

        - fatal configuration errors stop immediately;
        - the final attempt stops;
        - anything else retries after backoff, re-creating the client first
          when the error looks network, timeout or rate-limit related.
        """
        if isinstance(error, ClientInitError):
            return RetryDecision(retry=False)
        if attempt >= self.max_attempts:
            return RetryDecision(retry=False)
        return RetryDecision(
            retry=True,
            backoff_seconds=self.backoff_for(attempt),
            force_reinit=self.is_transient(error),
        )


class RetryingChunkProcessor:
    """Runs one chunk through the remote extractor until it succeeds or gives up.

    ``process`` never raises for ordinary exceptions: every chunk ends as a
    ``ChunkOutcome``. Cancellation still propagates.
    """

    def __init__(
        self,
        extractor: RemoteExtractor,
        policy: RetryPolicy | None = None,
        *,
        sleep: Sleep | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.extractor = extractor
        self.policy = policy or RetryPolicy()
        self._sleep: Sleep = sleep or asyncio.sleep
        self._telemetry: Telemetry = telemetry or TelemetryContext()

    async def process(self, chunk: Chunk, mime_type: str | None) -> ChunkOutcome:
        attempt = 0
        with self._telemetry(T_CHUNK, ordinal=chunk.ordinal, size=chunk.size) as tele:
            while True:
                attempt += 1
                try:
                    text = await self.extractor.extract(
                        chunk.data,
                        mime_type,
                        ordinal=chunk.ordinal,
                        total=chunk.total,
                    )
                except Exception as e:
                    decision = self.policy.decide(attempt, e)
                    if not decision.retry:
                        log.error(
                            "Chunk %d/%d failed after %d attempt(s): %s",
                            chunk.ordinal,
                            chunk.total,
                            attempt,
                            e,
                        )
                        tele.count(T_CHUNK_FAILED)
                        return ChunkOutcome.failed(
                            chunk.ordinal, str(e) or type(e).__name__, attempt
                        )

                    log.warning(
                        "Chunk %d/%d attempt %d/%d failed: %s; retrying in %.1fs",
                        chunk.ordinal,
                        chunk.total,
                        attempt,
                        self.policy.max_attempts,
                        e,
                        decision.backoff_seconds,
                    )
                    tele.count(T_CHUNK_RETRY)
                    if decision.force_reinit:
                        self.extractor.reset()
                    await self._sleep(decision.backoff_seconds)
                    continue

                if attempt > 1:
                    log.info(
                        "Chunk %d/%d succeeded on attempt %d",
                        chunk.ordinal,
                        chunk.total,
                        attempt,
                    )
                return ChunkOutcome(
                    ordinal=chunk.ordinal,
                    succeeded=True,
                    text=text,
                    attempts=attempt,
                )
