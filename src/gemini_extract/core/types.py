"""Core data types that flow through the extraction pipeline.

Every record here is immutable. Chunks and outcomes exist for the duration of
one file's processing; reports and results are built once and then only read.
"""

from __future__ import annotations

import dataclasses
from enum import Enum
from pathlib import Path
import typing

if typing.TYPE_CHECKING:
    from collections.abc import Callable


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            raise exc(f"{field_name}: {message}")
        raise exc(message)


# --- Result Monad ---

TSuccess = typing.TypeVar("TSuccess")
TFailure = typing.TypeVar("TFailure", bound=Exception)


@dataclasses.dataclass(frozen=True, slots=True)
class Success[TSuccess]:
    """A successful step result."""

    value: TSuccess


@dataclasses.dataclass(frozen=True, slots=True)
class Failure[TFailure]:
    """A failed step result, containing the error."""

    error: TFailure


Result = Success[TSuccess] | Failure[TFailure]

# --- Chunking ---


@dataclasses.dataclass(frozen=True, slots=True)
class ByteRange:
    """Half-open byte range ``[start, end)`` of a payload."""

    start: int
    end: int

    def __post_init__(self) -> None:
        """Validate range bounds."""
        _require(
            condition=0 <= self.start <= self.end,
            message=f"invalid range [{self.start}, {self.end})",
            field_name="ByteRange",
        )

    @property
    def size(self) -> int:
        return self.end - self.start


@dataclasses.dataclass(frozen=True, slots=True)
class Chunk:
    """A contiguous view over a payload with its 1-based position."""

    ordinal: int
    total: int
    data: memoryview

    def __post_init__(self) -> None:
        """Validate ordinal placement."""
        _require(
            condition=1 <= self.ordinal <= self.total,
            message=f"must be within 1..{self.total}, got {self.ordinal}",
            field_name="ordinal",
        )

    @property
    def size(self) -> int:
        return self.data.nbytes


@dataclasses.dataclass(frozen=True, slots=True)
class ChunkOutcome:
    """Terminal result for one chunk after all retries."""

    ordinal: int
    succeeded: bool
    text: str = ""
    error_reason: str | None = None
    attempts: int = 0

    def __post_init__(self) -> None:
        """Validate outcome invariants."""
        _require(
            condition=self.ordinal >= 1,
            message="must be >= 1",
            field_name="ordinal",
        )
        _require(
            condition=self.succeeded or self.text == "",
            message="failed outcomes carry no text",
            field_name="text",
        )

    @classmethod
    def failed(cls, ordinal: int, reason: str, attempts: int = 0) -> ChunkOutcome:
        return cls(
            ordinal=ordinal,
            succeeded=False,
            text="",
            error_reason=reason,
            attempts=attempts,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class ChunkDetail:
    """Per-chunk line of an extraction report."""

    ordinal: int
    succeeded: bool
    text_length: int
    error: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ExtractionReport:
    """Aggregate statistics for one remote extraction."""

    total_chunks: int
    succeeded: int
    failed: int
    success_rate_percent: float
    elapsed_seconds: float
    chunk_details: tuple[ChunkDetail, ...] = ()
    warning: str | None = None

    def __post_init__(self) -> None:
        """Validate that counters add up."""
        _require(
            condition=self.succeeded + self.failed == self.total_chunks,
            message="succeeded + failed must equal total_chunks",
            field_name="ExtractionReport",
        )

    def to_dict(self) -> dict[str, typing.Any]:
        return dataclasses.asdict(self)

    def summary(self) -> str:
        """Render a human-readable summary."""
        lines = [
            "===== Text Extraction Summary =====",
            f"- Total chunks: {self.total_chunks}",
            f"- Successfully processed: {self.succeeded} "
            f"({self.success_rate_percent:.1f}%)",
            f"- Failed: {self.failed}",
            f"- Processing time: {self.elapsed_seconds:.2f} seconds",
        ]
        if self.warning:
            lines.append(f"- Warning: {self.warning}")
        return "\n".join(lines)


@dataclasses.dataclass(frozen=True, slots=True)
class AssembledText:
    """Ordered, normalized text together with its report."""

    text: str
    report: ExtractionReport


# --- Conversion ---


class ConversionKind(str, Enum):
    """Office document families that need conversion to PDF."""

    WORD = "word"
    PRESENTATION = "presentation"
    SPREADSHEET = "spreadsheet"


@dataclasses.dataclass(frozen=True, slots=True)
class ConversionAttempt:
    """Record of one strategy's attempt on one file."""

    strategy_name: str
    output_path: Path
    valid: bool
    error: str | None = None


@dataclasses.dataclass(frozen=True, slots=True)
class ConversionResult:
    """Outcome of running the conversion cascade on one file."""

    success: bool
    output_path: Path | None = None
    strategy_name: str | None = None
    attempts: tuple[ConversionAttempt, ...] = ()
    use_direct_extraction: bool = False
    error: str | None = None

    def __post_init__(self) -> None:
        """A successful conversion names its output and strategy."""
        _require(
            condition=not self.success
            or (self.output_path is not None and self.strategy_name is not None),
            message="successful conversion requires output_path and strategy_name",
            field_name="ConversionResult",
        )


# --- Orchestration ---


@dataclasses.dataclass(frozen=True, slots=True)
class SourceFile:
    """A file handed over by the upload layer.

    Content access is lazy via ``content_loader`` so that oversize files are
    described without ever being read into memory.
    """

    name: str
    size_bytes: int
    content_loader: Callable[[], bytes]
    path: Path | None = None
    mime_type: str | None = None

    def __post_init__(self) -> None:
        """Validate source invariants."""
        _require(
            condition=isinstance(self.name, str) and self.name.strip() != "",
            message="cannot be empty",
            field_name="name",
        )
        _require(
            condition=isinstance(self.size_bytes, int) and self.size_bytes >= 0,
            message="must be an int >= 0",
            field_name="size_bytes",
        )
        _require(
            condition=callable(self.content_loader),
            message="must be callable",
            field_name="content_loader",
            exc=TypeError,
        )

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @property
    def stem(self) -> str:
        return Path(self.name).stem

    @classmethod
    def from_path(cls, path: str | Path, *, mime_type: str | None = None) -> SourceFile:
        file_path = Path(path)
        return cls(
            name=file_path.name,
            size_bytes=file_path.stat().st_size,
            content_loader=file_path.read_bytes,
            path=file_path,
            mime_type=mime_type,
        )

    @classmethod
    def from_bytes(
        cls, name: str, payload: bytes, *, mime_type: str | None = None
    ) -> SourceFile:
        return cls(
            name=name,
            size_bytes=len(payload),
            content_loader=lambda: payload,
            mime_type=mime_type,
        )


ArtifactKind = typing.Literal["text", "placeholder", "error"]


@dataclasses.dataclass(frozen=True, slots=True)
class FileExtractionResult:
    """Definite verdict for one file."""

    source_name: str
    success: bool
    artifact_kind: ArtifactKind
    output_path: Path | None
    text: str = ""
    report: ExtractionReport | None = None
    conversion: ConversionResult | None = None
    degraded: bool = False
    error: str | None = None
    elapsed_seconds: float = 0.0

    def describe(self) -> str:
        """Render the verdict and report for people."""
        verdict = "OK" if self.success else "FAILED"
        lines = [f"[{verdict}] {self.source_name} ({self.artifact_kind})"]
        if self.output_path is not None:
            lines.append(f"  output: {self.output_path}")
        if self.conversion is not None and self.conversion.success:
            lines.append(f"  converted with: {self.conversion.strategy_name}")
        if self.degraded:
            lines.append(
                "  degraded: conversion failed, original file sent for extraction"
            )
        if self.error:
            lines.append(f"  error: {self.error}")
        if self.report is not None:
            lines.extend(f"  {line}" for line in self.report.summary().splitlines())
        lines.append(f"  elapsed: {self.elapsed_seconds:.2f} seconds")
        return "\n".join(lines)


@dataclasses.dataclass(frozen=True, slots=True)
class BatchExtractionSummary:
    """All verdicts for one upload request, processed in order."""

    results: tuple[FileExtractionResult, ...]
    elapsed_seconds: float

    @property
    def total_files(self) -> int:
        return len(self.results)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total_files - self.succeeded

    def describe(self) -> str:
        header = (
            "=== Processing complete ===\n"
            f"- Total time: {self.elapsed_seconds:.2f} seconds\n"
            f"- Successful files: {self.succeeded}/{self.total_files}\n"
            f"- Failed files: {self.failed}/{self.total_files}"
        )
        return "\n\n".join([header, *(r.describe() for r in self.results)])
