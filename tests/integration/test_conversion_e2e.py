"""Office documents through the conversion cascade into extraction."""

from conftest import FakeStrategy, valid_pdf_bytes
from pptx import Presentation
import pytest

from gemini_extract.conversion import PresentationLibraryStrategy
from gemini_extract.core.types import SourceFile
from gemini_extract.files import get_mime_type

pytestmark = pytest.mark.integration


class _ObservingStrategy(FakeStrategy):
    """Records whether an earlier strategy's output still exists when it runs."""

    def __init__(self, name, earlier, **kwargs):
        super().__init__(name, **kwargs)
        self.earlier = earlier
        self.earlier_output_existed = None

    async def convert(self, source, kind, output_path):
        self.earlier_output_existed = self.earlier.calls[0].exists()
        await super().convert(source, kind, output_path)


@pytest.mark.asyncio
async def test_tiny_library_output_is_discarded_for_next_strategy(
    tmp_path, make_orchestrator
):
    library = FakeStrategy("presentation-library", payload=valid_pdf_bytes(50))
    libre = _ObservingStrategy("libreoffice", library, payload=valid_pdf_bytes(600))
    orchestrator, factory = make_orchestrator(strategies=[library, libre])

    result = await orchestrator.extract_file(
        SourceFile.from_bytes("lecture.pptx", b"PK\x03\x04 fake deck"), tmp_path
    )

    assert libre.earlier_output_existed is False
    assert result.success
    assert not result.degraded
    assert result.conversion.strategy_name == "libreoffice"
    assert [a.valid for a in result.conversion.attempts] == [False, True]
    (call,) = factory.models.calls
    part = call["contents"][1]
    assert part.inline_data.mime_type == "application/pdf"
    assert part.inline_data.data == valid_pdf_bytes(600)


@pytest.mark.asyncio
async def test_failed_conversion_sends_original_bytes(tmp_path, make_orchestrator):
    original = b"\xd0\xcf\x11\xe0 legacy word document"
    orchestrator, factory = make_orchestrator(
        strategies=[FakeStrategy("only", payload=b"nope")]
    )

    result = await orchestrator.extract_file(
        SourceFile.from_bytes("old.doc", original), tmp_path
    )

    assert result.success
    assert result.degraded
    assert result.conversion.use_direct_extraction
    part = factory.models.calls[0]["contents"][1]
    assert part.inline_data.data == original
    assert part.inline_data.mime_type == get_mime_type("old.doc")
    assert "degraded" in result.describe()


@pytest.mark.asyncio
async def test_source_on_disk_is_converted_in_place(tmp_path, make_orchestrator):
    deck = tmp_path / "deck.pptx"
    deck.write_bytes(b"deck on disk")
    seen = []

    class _Recording(FakeStrategy):
        async def convert(self, source, kind, output_path):
            seen.append(source)
            await super().convert(source, kind, output_path)

    recording = _Recording("recording", payload=valid_pdf_bytes())
    orchestrator, _ = make_orchestrator(strategies=[recording])

    result = await orchestrator.extract_file(SourceFile.from_path(deck), tmp_path / "out")

    assert result.success
    assert seen == [deck]
    # Temporary conversion outputs do not outlive the call
    assert not recording.calls[0].exists()
    assert [p.name for p in (tmp_path / "out").iterdir()] == [
        "deck_extracted_2024-05-01T12-30-45.txt"
    ]


@pytest.mark.asyncio
async def test_real_presentation_is_rendered_before_extraction(
    tmp_path, make_orchestrator
):
    presentation = Presentation()
    slide = presentation.slides.add_slide(presentation.slide_layouts[1])
    slide.shapes.title.text = "Agenda"
    slide.placeholders[1].text = "Budget\nHiring"
    path = tmp_path / "agenda.pptx"
    presentation.save(str(path))
    orchestrator, factory = make_orchestrator(
        lambda n, call: "Agenda\nBudget\nHiring",
        strategies=[PresentationLibraryStrategy()],
    )

    result = await orchestrator.extract_file(SourceFile.from_path(path), tmp_path / "out")

    assert result.success
    assert result.conversion.strategy_name == "presentation-library"
    assert result.text == "Agenda\nBudget\nHiring"
    sent = factory.models.calls[0]["contents"][1].inline_data
    assert sent.mime_type == "application/pdf"
    assert sent.data.startswith(b"%PDF-")
