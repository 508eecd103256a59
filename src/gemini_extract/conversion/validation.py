"""PDF output validation for conversion strategies."""

from __future__ import annotations

import logging
from pathlib import Path

from gemini_extract.constants import PDF_MIN_SIZE, PDF_SIGNATURE

log = logging.getLogger(__name__)


def validate_pdf(path: str | Path, min_size: int = PDF_MIN_SIZE) -> bool:
    """Check that ``path`` exists, has at least ``min_size`` bytes and a PDF header.

    Never raises; an unreadable file is simply invalid.
    """
    pdf_path = Path(path)
    try:
        if not pdf_path.is_file():
            log.warning("PDF not found: %s", pdf_path)
            return False
        size = pdf_path.stat().st_size
        if size < min_size:
            log.warning(
                "PDF too small (%d bytes < %d), probably empty or corrupt: %s",
                size,
                min_size,
                pdf_path.name,
            )
            return False
        with pdf_path.open("rb") as f:
            header = f.read(len(PDF_SIGNATURE))
    except OSError as e:
        log.warning("PDF validation failed for %s: %s", pdf_path, e)
        return False

    if header != PDF_SIGNATURE:
        log.warning("Invalid PDF header in %s", pdf_path.name)
        return False

    log.debug("Validated PDF %s (%d bytes)", pdf_path.name, size)
    return True


def discard(path: str | Path) -> None:
    """Delete a rejected output; a missing file is fine."""
    target = Path(path)
    try:
        target.unlink(missing_ok=True)
    except OSError as e:
        log.warning("Could not delete invalid output %s: %s", target, e)
