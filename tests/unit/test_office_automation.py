import codecs
from pathlib import Path

import pytest

from gemini_extract.conversion import OfficeAutomationStrategy, ProcessResult
from gemini_extract.conversion.office_automation import build_script
from gemini_extract.core.types import ConversionKind
from gemini_extract.exceptions import ConversionError

pytestmark = pytest.mark.unit


class _ScriptCapturingRunner:
    def __init__(self, result):
        self.result = result
        self.argv = None
        self.timeout = None
        self.script_bytes = None
        self.script_text = None
        self.script_path = None

    async def __call__(self, argv, timeout):
        self.argv = list(argv)
        self.timeout = timeout
        self.script_path = Path(argv[-1])
        self.script_bytes = self.script_path.read_bytes()
        self.script_text = self.script_bytes.decode("utf-8-sig")
        if isinstance(self.result, BaseException):
            raise self.result
        return self.result


def test_only_applies_on_windows(tmp_path):
    source = tmp_path / "a.pptx"
    assert OfficeAutomationStrategy(platform="win32").applies_to(
        source, ConversionKind.PRESENTATION
    )
    assert not OfficeAutomationStrategy(platform="linux").applies_to(
        source, ConversionKind.PRESENTATION
    )
    assert not OfficeAutomationStrategy(platform="darwin").applies_to(
        source, ConversionKind.WORD
    )


@pytest.mark.parametrize(
    ("kind", "marker"),
    [
        (ConversionKind.PRESENTATION, "$doc.SaveAs("),
        (ConversionKind.WORD, "Word.Application"),
        (ConversionKind.SPREADSHEET, "ExportAsFixedFormat(0,"),
    ],
)
def test_scripts_per_kind(tmp_path, kind, marker):
    script = build_script(kind, tmp_path / "in.bin", tmp_path / "out.pdf")
    assert marker in script
    assert "ReleaseComObject" in script
    assert "exit 1" in script


def test_paths_are_quoted_as_powershell_literals(tmp_path):
    source = tmp_path / "it's here.docx"
    script = build_script(ConversionKind.WORD, source, tmp_path / "out.pdf")
    assert "'" + str(source.resolve()).replace("'", "''") + "'" in script


@pytest.mark.asyncio
async def test_successful_run_removes_script(tmp_path):
    runner = _ScriptCapturingRunner(ProcessResult(0, "", ""))
    strategy = OfficeAutomationStrategy(
        timeout_seconds=120, runner=runner, platform="win32"
    )

    await strategy.convert(
        tmp_path / "deck.pptx", ConversionKind.PRESENTATION, tmp_path / "deck.pdf"
    )

    assert runner.argv[:5] == [
        "powershell",
        "-NoProfile",
        "-ExecutionPolicy",
        "Bypass",
        "-File",
    ]
    assert runner.timeout == 120
    assert "Powerpoint.Application" in runner.script_text
    assert not runner.script_path.exists()


@pytest.mark.asyncio
async def test_script_is_written_with_a_bom_for_non_ascii_paths(tmp_path):
    runner = _ScriptCapturingRunner(ProcessResult(0, "", ""))
    strategy = OfficeAutomationStrategy(runner=runner, platform="win32")
    source = tmp_path / "محاضرة.docx"

    await strategy.convert(source, ConversionKind.WORD, tmp_path / "out.pdf")

    assert runner.script_bytes.startswith(codecs.BOM_UTF8)
    assert str(source.resolve()) in runner.script_text


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("result", "message"),
    [
        (ProcessResult(-1, "", "", timed_out=True), "timed out"),
        (ProcessResult(1, "", "COM object not registered"), "not registered"),
        (FileNotFoundError("powershell"), "Could not start PowerShell"),
    ],
)
async def test_failures_raise_and_still_remove_script(tmp_path, result, message):
    runner = _ScriptCapturingRunner(result)
    strategy = OfficeAutomationStrategy(runner=runner, platform="win32")

    with pytest.raises(ConversionError, match=message):
        await strategy.convert(
            tmp_path / "sheet.xlsx", ConversionKind.SPREADSHEET, tmp_path / "s.pdf"
        )

    assert not runner.script_path.exists()
