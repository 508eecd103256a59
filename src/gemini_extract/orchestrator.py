"""Per-file extraction orchestration.

The orchestrator decides, for each uploaded file, which path produces its
text, and guarantees exactly one output artifact per file:

0. Oversize files get a metadata placeholder and are never read.
1. Text-like files are decoded locally and never sent anywhere.
2. Office documents go through the conversion cascade first. When every
   strategy fails the original bytes are sent as-is (degraded mode).
3. Everything else is chunked, extracted in batches and reassembled.

Any failure along the way ends in a structured error artifact instead of an
exception, so a batch of files always yields one verdict per file.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from datetime import datetime
import logging
from pathlib import Path
import tempfile
import time
from typing import TYPE_CHECKING

from gemini_extract.config import FrozenConfig, resolve_config
from gemini_extract.constants import (
    EMPTY_EXTRACTION_NOTICE,
    MAX_ERROR_MESSAGE_LENGTH,
    MAX_TOTAL_SIZE,
    MB,
)
from gemini_extract.conversion import ConversionCascade
from gemini_extract.core.types import (
    AssembledText,
    BatchExtractionSummary,
    ConversionResult,
    ExtractionReport,
    FileExtractionResult,
    SourceFile,
)
from gemini_extract.exceptions import APIError, OutputWriteError
from gemini_extract.files import conversion_kind, get_mime_type, is_text_like
from gemini_extract.pipeline import (
    BatchScheduler,
    RemoteExtractor,
    RetryingChunkProcessor,
    RetryPolicy,
    assemble,
    plan_chunks,
    split_payload,
)
from gemini_extract.telemetry import TelemetryContext
from gemini_extract.text import normalize_text

if TYPE_CHECKING:
    from gemini_extract.pipeline.remote_extractor import ClientFactory
    from gemini_extract.telemetry import Telemetry

log = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S"

T_FILE = "extract.file"
T_CHUNK_COUNT = "chunks"


class ExtractionOrchestrator:
    """Turns uploaded files into text artifacts, one file at a time."""

    def __init__(
        self,
        extractor: RemoteExtractor,
        scheduler: BatchScheduler,
        cascade: ConversionCascade,
        *,
        now: Callable[[], datetime] | None = None,
        clock: Callable[[], float] | None = None,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.extractor = extractor
        self.scheduler = scheduler
        self.cascade = cascade
        self._now = now or datetime.now
        self._clock = clock or time.perf_counter
        self._telemetry: Telemetry = telemetry or TelemetryContext()

    # --- Public API ---

    async def extract_files(
        self, sources: Iterable[SourceFile], output_dir: str | Path
    ) -> BatchExtractionSummary:
        """Process files strictly one after another."""
        start = self._clock()
        results = []
        for source in sources:
            results.append(await self.extract_file(source, output_dir))
        summary = BatchExtractionSummary(
            results=tuple(results), elapsed_seconds=self._clock() - start
        )
        log.info(
            "Processed %d file(s): %d succeeded, %d failed",
            summary.total_files,
            summary.succeeded,
            summary.failed,
        )
        return summary

    async def extract_file(
        self, source: SourceFile, output_dir: str | Path
    ) -> FileExtractionResult:
        """Produce exactly one artifact for ``source`` and report the verdict."""
        output_path = Path(output_dir)
        start = self._clock()
        stamp = self._now().strftime(TIMESTAMP_FORMAT)
        log.info("Extracting %s (%.2f MB)", source.name, source.size_bytes / MB)

        with self._telemetry(T_FILE, name=source.name, size=source.size_bytes):
            try:
                output_path.mkdir(parents=True, exist_ok=True)
                return await self._extract(source, output_path, stamp, start)
            except Exception as e:
                log.error("Extraction failed for %s: %s", source.name, e, exc_info=True)
                return self._fail(source, output_path, stamp, start, e)

    # --- Decision policy ---

    async def _extract(
        self, source: SourceFile, output_dir: Path, stamp: str, start: float
    ) -> FileExtractionResult:
        if source.size_bytes > MAX_TOTAL_SIZE:
            return self._placeholder(source, output_dir, stamp, start)

        if is_text_like(source.name, source.mime_type):
            log.info("Decoding %s directly", source.name)
            text = normalize_text(
                source.content_loader().decode("utf-8", errors="replace")
            )
            path = self._write(
                output_dir,
                f"{source.stem}_extracted_{stamp}.txt",
                text or EMPTY_EXTRACTION_NOTICE,
            )
            return FileExtractionResult(
                source_name=source.name,
                success=True,
                artifact_kind="text",
                output_path=path,
                text=text,
                elapsed_seconds=self._clock() - start,
            )

        self.extractor.ensure_ready()

        kind = conversion_kind(source.name)
        mime_type = source.mime_type or get_mime_type(source.name)
        conversion: ConversionResult | None = None
        degraded = False

        if kind is None:
            payload = source.content_loader()
        else:
            with tempfile.TemporaryDirectory(prefix="gemini_extract_") as work_dir:
                work_path = Path(work_dir)
                input_path = source.path
                if input_path is None:
                    input_path = work_path / Path(source.name).name
                    input_path.write_bytes(source.content_loader())
                conversion = await self.cascade.run(
                    input_path, kind, work_path / "converted"
                )
                if conversion.success and conversion.output_path is not None:
                    payload = conversion.output_path.read_bytes()
                    mime_type = "application/pdf"
                else:
                    log.warning(
                        "Conversion failed for %s; sending the original file",
                        source.name,
                    )
                    payload = source.content_loader()
                    degraded = True

        assembled = await self._extract_payload(payload, mime_type, start)
        report = assembled.report

        if report.total_chunks and report.succeeded == 0:
            reasons = {d.error for d in report.chunk_details if d.error}
            error = APIError(
                f"All {report.total_chunks} chunk(s) failed: "
                + "; ".join(sorted(reasons))
            )
            return self._fail(
                source,
                output_dir,
                stamp,
                start,
                error,
                report=report,
                conversion=conversion,
                degraded=degraded,
            )

        path = self._write(
            output_dir,
            f"{source.stem}_extracted_{stamp}.txt",
            assembled.text or EMPTY_EXTRACTION_NOTICE,
        )
        log.info("Saved extracted text for %s to %s", source.name, path)
        return FileExtractionResult(
            source_name=source.name,
            success=True,
            artifact_kind="text",
            output_path=path,
            text=assembled.text,
            report=report,
            conversion=conversion,
            degraded=degraded,
            elapsed_seconds=self._clock() - start,
        )

    async def _extract_payload(
        self, payload: bytes, mime_type: str, start: float
    ) -> AssembledText:
        ranges = plan_chunks(len(payload))
        chunks = split_payload(payload, ranges)
        log.info("Extracting %d chunk(s) as %s", len(chunks), mime_type)
        self._telemetry.gauge(T_CHUNK_COUNT, len(chunks))
        outcomes = await self.scheduler.run_all(chunks, mime_type)
        assembled = assemble(outcomes, elapsed_seconds=self._clock() - start)
        log.info("\n%s", assembled.report.summary())
        return assembled

    # --- Artifacts ---

    def _write(self, output_dir: Path, name: str, content: str) -> Path:
        """Create a new artifact, suffixing ``-2``, ``-3``... if ``name`` is taken."""
        base = Path(name)
        path = output_dir / name
        counter = 1
        while True:
            try:
                with path.open("x", encoding="utf-8") as f:
                    f.write(content)
                return path
            except FileExistsError:
                counter += 1
                path = output_dir / f"{base.stem}-{counter}{base.suffix}"
            except OSError as e:
                raise OutputWriteError(f"Could not write {path}: {e}") from e

    def _placeholder(
        self, source: SourceFile, output_dir: Path, stamp: str, start: float
    ) -> FileExtractionResult:
        log.warning(
            "%s is %.2f MB, above the %d MB limit; writing a placeholder",
            source.name,
            source.size_bytes / MB,
            MAX_TOTAL_SIZE // MB,
        )
        content = "\n".join(
            [
                "File information:",
                f"- Name: {source.name}",
                f"- Type: {source.mime_type or get_mime_type(source.name)}",
                f"- Size: {source.size_bytes / MB:.2f} MB",
                f"- Path: {source.path if source.path is not None else '(uploaded)'}",
                "",
                "Text was not extracted because the file is larger than the "
                f"maximum supported size of {MAX_TOTAL_SIZE // MB} MB.",
            ]
        )
        path = self._write(
            output_dir, f"{source.stem}_extracted_{stamp}.txt", content
        )
        return FileExtractionResult(
            source_name=source.name,
            success=True,
            artifact_kind="placeholder",
            output_path=path,
            elapsed_seconds=self._clock() - start,
        )

    def _fail(
        self,
        source: SourceFile,
        output_dir: Path,
        stamp: str,
        start: float,
        error: Exception,
        *,
        report: ExtractionReport | None = None,
        conversion: ConversionResult | None = None,
        degraded: bool = False,
    ) -> FileExtractionResult:
        elapsed = self._clock() - start
        message = (str(error) or type(error).__name__)[:MAX_ERROR_MESSAGE_LENGTH]
        content = "\n".join(
            [
                f"Error extracting text from: {source.name}",
                f"Error: {message}",
                f"Processing time: {elapsed:.2f} seconds",
                f"Timestamp: {self._now().isoformat()}",
                "",
                "Please verify that the file is valid and try again.",
            ]
        )
        path: Path | None
        try:
            output_dir.mkdir(parents=True, exist_ok=True)
            path = self._write(
                output_dir, f"{source.stem}_error_{stamp}.txt", content
            )
        except (OutputWriteError, OSError) as e:
            log.error("Could not write error file for %s: %s", source.name, e)
            path = None
        return FileExtractionResult(
            source_name=source.name,
            success=False,
            artifact_kind="error",
            output_path=path,
            report=report,
            conversion=conversion,
            degraded=degraded,
            error=message,
            elapsed_seconds=elapsed,
        )


def create_orchestrator(
    config: FrozenConfig | None = None,
    *,
    client_factory: ClientFactory | None = None,
    telemetry: Telemetry | None = None,
) -> ExtractionOrchestrator:
    """Create an orchestrator wired from configuration.

    If no configuration is provided, it is resolved from the environment.
    The credential check runs here so a missing key is reported at startup;
    it does not prevent construction, since text-like and oversize files
    never need the remote service.
    """
    final_config = config if config is not None else resolve_config()
    tele = telemetry or TelemetryContext()

    extractor = RemoteExtractor.from_config(final_config, client_factory)
    extractor.check_credentials()

    processor = RetryingChunkProcessor(
        extractor,
        RetryPolicy(
            max_attempts=final_config.max_attempts,
            backoff_base_seconds=final_config.backoff_base_seconds,
        ),
        telemetry=tele,
    )
    scheduler = BatchScheduler(
        processor,
        width=final_config.batch_width,
        delay_seconds=final_config.batch_delay_seconds,
        telemetry=tele,
    )
    cascade = ConversionCascade.from_config(final_config, telemetry=tele)
    return ExtractionOrchestrator(extractor, scheduler, cascade, telemetry=tele)
