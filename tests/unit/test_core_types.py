from pathlib import Path

import pytest

from gemini_extract.core.types import (
    BatchExtractionSummary,
    ByteRange,
    Chunk,
    ConversionResult,
    ExtractionReport,
    FileExtractionResult,
    SourceFile,
)

pytestmark = pytest.mark.unit


def test_byte_range_validation():
    assert ByteRange(3, 10).size == 7
    with pytest.raises(ValueError, match="ByteRange"):
        ByteRange(5, 4)


def test_chunk_ordinal_must_be_in_range():
    with pytest.raises(ValueError, match="ordinal"):
        Chunk(ordinal=3, total=2, data=memoryview(b""))


def test_report_counters_must_add_up():
    with pytest.raises(ValueError):
        ExtractionReport(
            total_chunks=3,
            succeeded=1,
            failed=1,
            success_rate_percent=33.3,
            elapsed_seconds=0.0,
        )


def test_successful_conversion_requires_output():
    with pytest.raises(ValueError):
        ConversionResult(success=True)
    assert ConversionResult(success=True, output_path=Path("x.pdf"), strategy_name="s")


def test_source_from_path_is_lazy(tmp_path):
    path = tmp_path / "Slides.PPTX"
    path.write_bytes(b"12345")

    source = SourceFile.from_path(path)

    assert source.name == "Slides.PPTX"
    assert source.size_bytes == 5
    assert source.extension == ".pptx"
    assert source.stem == "Slides"
    assert source.content_loader() == b"12345"


def test_source_validation():
    with pytest.raises(ValueError, match="name"):
        SourceFile.from_bytes(" ", b"")
    with pytest.raises(TypeError, match="content_loader"):
        SourceFile(name="a.txt", size_bytes=0, content_loader=b"")  # type: ignore[arg-type]


def test_report_round_trips_to_dict():
    report = ExtractionReport(
        total_chunks=1,
        succeeded=1,
        failed=0,
        success_rate_percent=100.0,
        elapsed_seconds=0.25,
    )
    data = report.to_dict()
    assert data["total_chunks"] == 1
    assert data["chunk_details"] == ()
    assert "Processing time: 0.25 seconds" in report.summary()


def test_batch_summary_counts_and_describes():
    ok = FileExtractionResult(
        source_name="a.pdf",
        success=True,
        artifact_kind="text",
        output_path=Path("out/a.txt"),
    )
    bad = FileExtractionResult(
        source_name="b.pdf",
        success=False,
        artifact_kind="error",
        output_path=None,
        degraded=True,
        error="All 1 chunk(s) failed",
    )

    summary = BatchExtractionSummary(results=(ok, bad), elapsed_seconds=1.0)

    assert (summary.total_files, summary.succeeded, summary.failed) == (2, 1, 1)
    text = summary.describe()
    assert "Successful files: 1/2" in text
    assert "[OK] a.pdf (text)" in text
    assert "[FAILED] b.pdf (error)" in text
    assert "degraded" in text
