"""LibreOffice (``soffice``) headless conversion with retries.

Each attempt uses the next export profile in turn, so a document that trips
one export filter gets a chance with another. Lingering ``soffice`` processes
hold the profile lock and make headless conversions hang, so they are killed
before the first attempt and after any attempt that times out.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
import dataclasses
import json
import logging
from pathlib import Path
import shutil
import sys

from gemini_extract.constants import (
    CONVERTER_MAX_ATTEMPTS,
    CONVERTER_RETRY_DELAY_SECONDS,
    CONVERTER_TIMEOUT_SECONDS,
    KILL_SETTLE_SECONDS,
    KILL_TIMEOUT_SECONDS,
    PDF_MIN_SIZE,
)
from gemini_extract.core.types import ConversionKind
from gemini_extract.exceptions import ConversionError

from .base import ProcessRunner, run_process
from .validation import discard, validate_pdf

log = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]
Locator = Callable[[], str | None]

WINDOWS_SOFFICE_PATHS = (
    r"C:\Program Files\LibreOffice\program\soffice.exe",
    r"C:\Program Files (x86)\LibreOffice\program\soffice.exe",
    r"C:\Program Files\LibreOffice 7\program\soffice.exe",
    r"C:\Program Files\LibreOffice 7.3\program\soffice.exe",
    r"C:\Program Files\LibreOffice 7.4\program\soffice.exe",
    r"C:\Program Files\LibreOffice 7.5\program\soffice.exe",
    r"C:\Program Files\LibreOffice 7.6\program\soffice.exe",
)
UNIX_SOFFICE_PATHS = (
    "/usr/bin/soffice",
    "/usr/local/bin/soffice",
    "/Applications/LibreOffice.app/Contents/MacOS/soffice",
)

EXPORT_FILTERS: dict[ConversionKind, str] = {
    ConversionKind.WORD: "writer_pdf_Export",
    ConversionKind.PRESENTATION: "impress_pdf_Export",
    ConversionKind.SPREADSHEET: "calc_pdf_Export",
}

_DOWNSAMPLE_OPTIONS = json.dumps(
    {
        "ReduceImageResolution": {"type": "boolean", "value": "true"},
        "MaxImageResolution": {"type": "long", "value": "150"},
    },
    separators=(",", ":"),
)


@dataclasses.dataclass(frozen=True, slots=True)
class ExportProfile:
    """One way of asking soffice for a PDF."""

    label: str
    extra_args: tuple[str, ...] = ()
    filter_name: str | None = None
    filter_options: str | None = None

    def convert_to(self, kind: ConversionKind) -> str:
        if self.filter_name is None:
            return "pdf"
        name = EXPORT_FILTERS[kind] if self.filter_name == "native" else self.filter_name
        if self.filter_options:
            return f"pdf:{name}:{self.filter_options}"
        return f"pdf:{name}"


DEFAULT_PROFILES = (
    ExportProfile("default"),
    ExportProfile("explicit-filter", filter_name="native"),
    ExportProfile("web-export", filter_name="writer_web_pdf_Export"),
    ExportProfile("norestore", extra_args=("--norestore",)),
    ExportProfile(
        "downsampled-images",
        filter_name="native",
        filter_options=_DOWNSAMPLE_OPTIONS,
    ),
)


def locate_soffice(platform: str | None = None) -> str | None:
    """Find the soffice binary in well-known locations, then on ``PATH``."""
    platform = platform or sys.platform
    candidates = WINDOWS_SOFFICE_PATHS if platform == "win32" else UNIX_SOFFICE_PATHS
    for candidate in candidates:
        if Path(candidate).is_file():
            log.debug("Found LibreOffice at %s", candidate)
            return candidate
    found = shutil.which("soffice")
    if found:
        log.debug("Found LibreOffice on PATH at %s", found)
    else:
        log.warning("LibreOffice (soffice) not found on this system")
    return found


class LibreOfficeStrategy:
    """Converts any office family through a headless LibreOffice."""

    name = "libreoffice"

    def __init__(
        self,
        *,
        attempts: int = CONVERTER_MAX_ATTEMPTS,
        timeout_seconds: float = CONVERTER_TIMEOUT_SECONDS,
        retry_delay_seconds: float = CONVERTER_RETRY_DELAY_SECONDS,
        pdf_min_size: int = PDF_MIN_SIZE,
        profiles: tuple[ExportProfile, ...] = DEFAULT_PROFILES,
        locator: Locator | None = None,
        runner: ProcessRunner | None = None,
        sleep: Sleep | None = None,
        platform: str | None = None,
        kill_lingering: bool = True,
    ) -> None:
        if attempts < 1:
            raise ValueError(f"attempts must be >= 1, got {attempts}")
        if not profiles:
            raise ValueError("at least one export profile is required")
        self.attempts = attempts
        self.timeout_seconds = timeout_seconds
        self.retry_delay_seconds = retry_delay_seconds
        self.pdf_min_size = pdf_min_size
        self.profiles = profiles
        self._platform = platform or sys.platform
        self._locator: Locator = locator or (lambda: locate_soffice(self._platform))
        self._runner: ProcessRunner = runner or run_process
        self._sleep: Sleep = sleep or asyncio.sleep
        self._kill_lingering = kill_lingering

    def applies_to(self, source: Path, kind: ConversionKind) -> bool:
        return kind in EXPORT_FILTERS

    def profile_for(self, attempt: int) -> ExportProfile:
        return self.profiles[(attempt - 1) % len(self.profiles)]

    def build_command(
        self,
        binary: str,
        source: Path,
        kind: ConversionKind,
        outdir: Path,
        profile: ExportProfile,
    ) -> list[str]:
        return [
            binary,
            "--headless",
            "--nologo",
            "--nofirststartwizard",
            *profile.extra_args,
            "--convert-to",
            profile.convert_to(kind),
            "--outdir",
            str(outdir),
            str(source),
        ]

    async def kill_lingering(self) -> None:
        """Best-effort kill of soffice processes left over by earlier runs."""
        if not self._kill_lingering:
            return
        if self._platform == "win32":
            argv = ["taskkill", "/f", "/im", "soffice.exe", "/im", "soffice.bin"]
        else:
            argv = ["pkill", "-f", "soffice"]
        try:
            await self._runner(argv, KILL_TIMEOUT_SECONDS)
        except OSError as e:
            log.debug("Could not run %s: %s", argv[0], e)
            return
        await self._sleep(KILL_SETTLE_SECONDS)

    async def convert(
        self, source: Path, kind: ConversionKind, output_path: Path
    ) -> None:
        binary = self._locator()
        if binary is None:
            raise ConversionError("LibreOffice (soffice) is not installed")

        await self.kill_lingering()

        outdir = output_path.parent / f"{output_path.stem}.libreoffice"
        outdir.mkdir(parents=True, exist_ok=True)
        produced = outdir / f"{source.stem}.pdf"
        last_error = "no attempt made"

        try:
            for attempt in range(1, self.attempts + 1):
                profile = self.profile_for(attempt)
                discard(produced)
                log.info(
                    "LibreOffice attempt %d/%d for %s (profile: %s)",
                    attempt,
                    self.attempts,
                    source.name,
                    profile.label,
                )
                argv = self.build_command(binary, source, kind, outdir, profile)
                try:
                    result = await self._runner(argv, self.timeout_seconds)
                except OSError as e:
                    raise ConversionError(f"Could not start LibreOffice: {e}") from e

                if result.timed_out:
                    last_error = f"timed out after {self.timeout_seconds:.0f}s"
                    await self.kill_lingering()
                elif not result.ok:
                    last_error = (
                        result.stderr.strip() or f"exit code {result.returncode}"
                    )
                elif validate_pdf(produced, self.pdf_min_size):
                    produced.replace(output_path)
                    log.info(
                        "LibreOffice converted %s on attempt %d", source.name, attempt
                    )
                    return
                else:
                    last_error = "produced no valid PDF"
                    discard(produced)

                log.warning(
                    "LibreOffice attempt %d/%d for %s failed: %s",
                    attempt,
                    self.attempts,
                    source.name,
                    last_error,
                )
                if attempt < self.attempts:
                    await self._sleep(self.retry_delay_seconds)
        finally:
            shutil.rmtree(outdir, ignore_errors=True)

        raise ConversionError(
            f"LibreOffice failed after {self.attempts} attempts: {last_error}"
        )
