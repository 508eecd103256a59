"""Strategy protocol and subprocess plumbing shared by converters."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
import dataclasses
import logging
from pathlib import Path
from typing import Protocol, runtime_checkable

from gemini_extract.core.types import ConversionKind

log = logging.getLogger(__name__)


@runtime_checkable
class ConversionStrategy(Protocol):
    """One way of turning an office document into a PDF.

    ``convert`` writes ``output_path`` or raises; validation of what it wrote
    is the cascade's job.
    """

    name: str

    def applies_to(self, source: Path, kind: ConversionKind) -> bool: ...  # noqa: D102

    async def convert(  # noqa: D102
        self, source: Path, kind: ConversionKind, output_path: Path
    ) -> None: ...


@dataclasses.dataclass(frozen=True, slots=True)
class ProcessResult:
    """Exit status and captured output of a finished child process."""

    returncode: int
    stdout: str
    stderr: str
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out


ProcessRunner = Callable[[Sequence[str], float], Awaitable[ProcessResult]]


async def run_process(argv: Sequence[str], timeout: float) -> ProcessResult:
    """Run ``argv`` without a shell, killing it if it outlives ``timeout``.

    Raises:
        FileNotFoundError: If the executable does not exist.
    """
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except TimeoutError:
        log.warning("Process %s timed out after %.0fs; killing it", argv[0], timeout)
        process.kill()
        await process.wait()
        return ProcessResult(returncode=-1, stdout="", stderr="", timed_out=True)
    return ProcessResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
