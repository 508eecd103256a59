"""Ordered fallback cascade of office-to-PDF conversion strategies.

Strategies are tried in a fixed order; the first one whose output passes PDF
validation wins. Rejected outputs are deleted as soon as they fail
validation, so a failed cascade leaves nothing behind and tells the caller to
fall back to direct extraction of the original file.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from gemini_extract.constants import (
    CONVERTER_MAX_ATTEMPTS,
    CONVERTER_RETRY_DELAY_SECONDS,
    CONVERTER_TIMEOUT_SECONDS,
    PDF_MIN_SIZE,
)
from gemini_extract.core.types import (
    ConversionAttempt,
    ConversionKind,
    ConversionResult,
    Failure,
    Result,
    Success,
)
from gemini_extract.telemetry import TelemetryContext

from .libreoffice import LibreOfficeStrategy
from .office_automation import OfficeAutomationStrategy
from .presentation import PresentationLibraryStrategy
from .validation import discard, validate_pdf

if TYPE_CHECKING:
    from gemini_extract.config import FrozenConfig
    from gemini_extract.telemetry import Telemetry

    from .base import ConversionStrategy

log = logging.getLogger(__name__)

T_STRATEGY = "convert.strategy"
T_INVALID_OUTPUT = "convert.invalid_output"


def default_strategies(
    *,
    timeout_seconds: float = CONVERTER_TIMEOUT_SECONDS,
    attempts: int = CONVERTER_MAX_ATTEMPTS,
    retry_delay_seconds: float = CONVERTER_RETRY_DELAY_SECONDS,
    pdf_min_size: int = PDF_MIN_SIZE,
) -> tuple[ConversionStrategy, ...]:
    """Library, then Office automation, then LibreOffice."""
    return (
        PresentationLibraryStrategy(),
        OfficeAutomationStrategy(timeout_seconds=2 * timeout_seconds),
        LibreOfficeStrategy(
            attempts=attempts,
            timeout_seconds=timeout_seconds,
            retry_delay_seconds=retry_delay_seconds,
            pdf_min_size=pdf_min_size,
        ),
    )


class ConversionCascade:
    """Runs conversion strategies in order until one yields a valid PDF."""

    def __init__(
        self,
        strategies: Sequence[ConversionStrategy] | None = None,
        *,
        pdf_min_size: int = PDF_MIN_SIZE,
        telemetry: Telemetry | None = None,
    ) -> None:
        self.strategies = tuple(
            strategies if strategies is not None else default_strategies()
        )
        self.pdf_min_size = pdf_min_size
        self._telemetry: Telemetry = telemetry or TelemetryContext()

    @classmethod
    def from_config(
        cls,
        config: FrozenConfig,
        telemetry: Telemetry | None = None,
    ) -> ConversionCascade:
        strategies = default_strategies(
            timeout_seconds=config.converter_timeout_seconds,
            attempts=config.converter_attempts,
            retry_delay_seconds=config.converter_retry_delay_seconds,
            pdf_min_size=config.pdf_min_size,
        )
        return cls(strategies, pdf_min_size=config.pdf_min_size, telemetry=telemetry)

    async def _attempt(
        self,
        strategy: ConversionStrategy,
        source: Path,
        kind: ConversionKind,
        output_path: Path,
    ) -> Result[Path, Exception]:
        try:
            await strategy.convert(source, kind, output_path)
        except Exception as e:
            return Failure(e)
        if not validate_pdf(output_path, self.pdf_min_size):
            return Failure(ValueError("output failed PDF validation"))
        return Success(output_path)

    async def run(
        self, source: str | Path, kind: ConversionKind, work_dir: str | Path
    ) -> ConversionResult:
        """Convert ``source`` to PDF inside ``work_dir``.

        Returns:
            A successful result naming the validated PDF and the strategy that
            produced it, or a failed result with ``use_direct_extraction`` set.
        """
        source_path = Path(source)
        work_path = Path(work_dir)
        work_path.mkdir(parents=True, exist_ok=True)
        attempts: list[ConversionAttempt] = []

        for strategy in self.strategies:
            if not strategy.applies_to(source_path, kind):
                log.debug("Skipping %s for %s", strategy.name, source_path.name)
                continue

            output_path = work_path / f"{source_path.stem}.{strategy.name}.pdf"
            log.info("Converting %s with %s", source_path.name, strategy.name)
            with self._telemetry(T_STRATEGY, strategy=strategy.name) as tele:
                result = await self._attempt(strategy, source_path, kind, output_path)

            if isinstance(result, Success):
                attempts.append(
                    ConversionAttempt(strategy.name, result.value, valid=True)
                )
                log.info("Converted %s to PDF with %s", source_path.name, strategy.name)
                return ConversionResult(
                    success=True,
                    output_path=result.value,
                    strategy_name=strategy.name,
                    attempts=tuple(attempts),
                )

            if output_path.exists():
                tele.count(T_INVALID_OUTPUT)
            discard(output_path)
            log.warning(
                "%s could not convert %s: %s",
                strategy.name,
                source_path.name,
                result.error,
            )
            attempts.append(
                ConversionAttempt(
                    strategy.name, output_path, valid=False, error=str(result.error)
                )
            )

        log.warning(
            "All conversion strategies failed for %s; falling back to direct extraction",
            source_path.name,
        )
        return ConversionResult(
            success=False,
            attempts=tuple(attempts),
            use_direct_extraction=True,
            error="; ".join(f"{a.strategy_name}: {a.error}" for a in attempts)
            or "no conversion strategy applies",
        )
