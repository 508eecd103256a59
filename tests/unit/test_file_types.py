import pytest

from gemini_extract.core.types import ConversionKind
from gemini_extract.files import conversion_kind, get_mime_type, is_text_like

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    ("name", "mime"),
    [
        ("notes.txt", "text/plain"),
        ("REPORT.PDF", "application/pdf"),
        ("talk.mp3", "audio/mpeg"),
        ("photo.jpeg", "image/jpeg"),
        ("memo.m4a", "audio/m4a"),
        (
            "deck.pptx",
            "application/vnd.openxmlformats-officedocument.presentationml.presentation",
        ),
        ("blob.unknownext", "application/octet-stream"),
        ("no_extension", "application/octet-stream"),
    ],
)
def test_mime_lookup(name, mime):
    assert get_mime_type(name) == mime


@pytest.mark.parametrize(
    "name", ["a.txt", "b.md", "c.HTML", "d.css", "e.js", "f.json", "g.xml", "h.csv"]
)
def test_text_extensions(name):
    assert is_text_like(name)


def test_text_detection_by_mime_type():
    assert is_text_like("upload", "text/plain; charset=utf-8")
    assert is_text_like("payload.bin", "application/json")
    assert not is_text_like("upload", "application/pdf")
    assert not is_text_like("scan.pdf")


@pytest.mark.parametrize(
    ("name", "kind"),
    [
        ("a.doc", ConversionKind.WORD),
        ("a.DOCX", ConversionKind.WORD),
        ("a.ppt", ConversionKind.PRESENTATION),
        ("a.pptx", ConversionKind.PRESENTATION),
        ("a.xls", ConversionKind.SPREADSHEET),
        ("a.xlsx", ConversionKind.SPREADSHEET),
        ("a.pdf", None),
        ("a.txt", None),
    ],
)
def test_conversion_routing(name, kind):
    assert conversion_kind(name) is kind
