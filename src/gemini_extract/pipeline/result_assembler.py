"""Assemble chunk outcomes into ordered text and a statistics report."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
import logging

from gemini_extract.constants import LOW_SUCCESS_RATE_PERCENT
from gemini_extract.core.types import (
    AssembledText,
    ChunkDetail,
    ChunkOutcome,
    ExtractionReport,
)
from gemini_extract.exceptions import InvariantViolationError
from gemini_extract.text.normalize import NormalizationRule, normalize_text

log = logging.getLogger(__name__)


def _validate_ordinals(outcomes: Sequence[ChunkOutcome]) -> None:
    counts = Counter(o.ordinal for o in outcomes)
    duplicates = sorted(ordinal for ordinal, n in counts.items() if n > 1)
    if duplicates:
        raise InvariantViolationError(
            f"Duplicate outcomes for chunk ordinal(s): {duplicates}"
        )
    missing = sorted(set(range(1, len(outcomes) + 1)) - counts.keys())
    if missing:
        raise InvariantViolationError(
            f"Missing outcomes for chunk ordinal(s): {missing}"
        )


def low_success_warning(success_rate_percent: float) -> str:
    return (
        f"Low success rate ({success_rate_percent:.1f}%). "
        "Text extraction may be incomplete."
    )


def assemble(
    outcomes: Iterable[ChunkOutcome],
    *,
    elapsed_seconds: float = 0.0,
    rules: Sequence[NormalizationRule] | None = None,
) -> AssembledText:
    """Order outcomes, join successful text and compute statistics.

    Failed chunks contribute nothing to the text; they only show up in the
    report. The result is independent of the order outcomes arrive in.

    Raises:
        InvariantViolationError: If ordinals are duplicated or have gaps.
    """
    ordered = sorted(outcomes, key=lambda o: o.ordinal)
    _validate_ordinals(ordered)

    total = len(ordered)
    succeeded = sum(1 for o in ordered if o.succeeded)
    failed = total - succeeded
    success_rate = (succeeded / total * 100) if total else 0.0

    warning = None
    if success_rate < LOW_SUCCESS_RATE_PERCENT:
        warning = low_success_warning(success_rate)
        log.warning(warning)

    raw_text = "\n".join(o.text for o in ordered if o.succeeded)
    report = ExtractionReport(
        total_chunks=total,
        succeeded=succeeded,
        failed=failed,
        success_rate_percent=success_rate,
        elapsed_seconds=elapsed_seconds,
        chunk_details=tuple(
            ChunkDetail(
                ordinal=o.ordinal,
                succeeded=o.succeeded,
                text_length=len(o.text),
                error=o.error_reason,
            )
            for o in ordered
        ),
        warning=warning,
    )
    return AssembledText(text=normalize_text(raw_text, rules), report=report)
