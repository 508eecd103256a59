"""Microsoft Office conversion through COM automation (Windows only).

A PowerShell script drives Word, PowerPoint or Excel to save the document as
PDF. The script is written to a temporary file that is removed on every exit
path.
"""

from __future__ import annotations

import logging
from pathlib import Path
import sys
import tempfile

from gemini_extract.constants import CONVERTER_TIMEOUT_SECONDS
from gemini_extract.core.types import ConversionKind
from gemini_extract.exceptions import ConversionError

from .base import ProcessRunner, run_process

log = logging.getLogger(__name__)

_RELEASE_AND_EXIT = """
    [System.Runtime.Interopservices.Marshal]::ReleaseComObject($doc) | Out-Null
    [System.Runtime.Interopservices.Marshal]::ReleaseComObject($app) | Out-Null
    [System.GC]::Collect()
    [System.GC]::WaitForPendingFinalizers()
    exit 0
"""

# {source} and {output} are single-quoted PowerShell literals
_SCRIPTS: dict[ConversionKind, str] = {
    ConversionKind.PRESENTATION: """
$ErrorActionPreference = "Stop"
try {{
    $app = New-Object -ComObject Powerpoint.Application
    $doc = $app.Presentations.Open({source}, $true, $false, $false)
    $doc.SaveAs({output}, 32)
    $doc.Close()
    $app.Quit()
{release}
}} catch {{
    Write-Error $_.Exception.Message
    exit 1
}}
""",
    ConversionKind.WORD: """
$ErrorActionPreference = "Stop"
try {{
    $app = New-Object -ComObject Word.Application
    $app.Visible = $false
    $doc = $app.Documents.Open({source})
    $doc.SaveAs({output}, 17)
    $doc.Close($false)
    $app.Quit()
{release}
}} catch {{
    Write-Error $_.Exception.Message
    exit 1
}}
""",
    ConversionKind.SPREADSHEET: """
$ErrorActionPreference = "Stop"
try {{
    $app = New-Object -ComObject Excel.Application
    $app.Visible = $false
    $app.DisplayAlerts = $false
    $doc = $app.Workbooks.Open({source})
    $doc.ExportAsFixedFormat(0, {output})
    $doc.Close($false)
    $app.Quit()
{release}
}} catch {{
    Write-Error $_.Exception.Message
    exit 1
}}
""",
}


def _ps_literal(path: Path) -> str:
    return "'" + str(path.resolve()).replace("'", "''") + "'"


def build_script(kind: ConversionKind, source: Path, output_path: Path) -> str:
    return _SCRIPTS[kind].format(
        source=_ps_literal(source),
        output=_ps_literal(output_path),
        release=_RELEASE_AND_EXIT,
    )


class OfficeAutomationStrategy:
    """Uses an installed Microsoft Office suite to export PDFs."""

    name = "office-automation"

    def __init__(
        self,
        *,
        timeout_seconds: float = 2 * CONVERTER_TIMEOUT_SECONDS,
        runner: ProcessRunner | None = None,
        platform: str | None = None,
    ) -> None:
        self.timeout_seconds = timeout_seconds
        self._runner: ProcessRunner = runner or run_process
        self._platform = platform or sys.platform

    def applies_to(self, source: Path, kind: ConversionKind) -> bool:
        return self._platform == "win32" and kind in _SCRIPTS

    async def convert(
        self, source: Path, kind: ConversionKind, output_path: Path
    ) -> None:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            "w", suffix=".ps1", encoding="utf-8-sig", delete=False
        ) as f:
            f.write(build_script(kind, source, output_path))
            script_path = Path(f.name)

        try:
            log.info("Converting %s with Office automation", source.name)
            result = await self._runner(
                [
                    "powershell",
                    "-NoProfile",
                    "-ExecutionPolicy",
                    "Bypass",
                    "-File",
                    str(script_path),
                ],
                self.timeout_seconds,
            )
        except OSError as e:
            raise ConversionError(f"Could not start PowerShell: {e}") from e
        finally:
            script_path.unlink(missing_ok=True)

        if result.timed_out:
            raise ConversionError(
                f"Office automation timed out after {self.timeout_seconds:.0f}s"
            )
        if not result.ok:
            raise ConversionError(
                f"Office automation failed: {result.stderr.strip() or result.returncode}"
            )
