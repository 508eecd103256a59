"""Pure-Python PowerPoint conversion: python-pptx reads, reportlab renders.

The rendering is text only and uses a standard PDF font. Decks it cannot
reproduce faithfully (pictures, charts, characters outside the font's
encoding, slides without text) raise ``ConversionError`` so the cascade moves
on to a real office suite.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Iterator
import logging
from pathlib import Path
from typing import Any

from pptx import Presentation
from pptx.shapes.group import GroupShape
from pptx.shapes.picture import Picture
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from gemini_extract.core.types import ConversionKind
from gemini_extract.exceptions import ConversionError

log = logging.getLogger(__name__)

_FONT = "Helvetica"
# Standard Type 1 fonts are drawn with WinAnsiEncoding
_FONT_ENCODING = "cp1252"
_TITLE_SIZE = 18
_BODY_SIZE = 11
_MARGIN = 48


def _flatten(shapes: Iterable[Any]) -> Iterator[Any]:
    for shape in shapes:
        if isinstance(shape, GroupShape):
            yield from _flatten(shape.shapes)
        else:
            yield shape


def _slide_content(slide: Any) -> tuple[list[str], bool]:
    """Text blocks of one slide and whether it also carries pictures or charts."""
    blocks: list[str] = []
    has_visuals = False
    for shape in _flatten(slide.shapes):
        if isinstance(shape, Picture) or getattr(shape, "has_chart", False):
            has_visuals = True
        elif getattr(shape, "has_text_frame", False) and shape.text_frame.text:
            blocks.append(shape.text_frame.text)
        elif getattr(shape, "has_table", False):
            for row in shape.table.rows:
                cells = [cell.text for cell in row.cells if cell.text]
                if cells:
                    blocks.append(" | ".join(cells))
    if slide.has_notes_slide and slide.notes_slide.notes_text_frame is not None:
        notes = slide.notes_slide.notes_text_frame.text
        if notes:
            blocks.append(notes)
    return blocks, has_visuals


def _read_slides(source: Path) -> list[tuple[list[str], bool]]:
    presentation = Presentation(str(source))
    return [_slide_content(slide) for slide in presentation.slides]


def slide_texts(source: Path) -> list[list[str]]:
    """Text blocks per slide, in shape order, including groups and table cells."""
    return [blocks for blocks, _ in _read_slides(source)]


def check_renderable(slides: list[tuple[list[str], bool]]) -> None:
    """Raise ``ConversionError`` if a text rendering would lose slide content."""
    if not slides:
        raise ConversionError("Presentation has no slides")
    for number, (blocks, has_visuals) in enumerate(slides, start=1):
        if has_visuals:
            raise ConversionError(f"Slide {number} has pictures or charts")
        if not blocks:
            raise ConversionError(f"Slide {number} has no extractable text")
        for block in blocks:
            try:
                block.encode(_FONT_ENCODING)
            except UnicodeEncodeError as e:
                raise ConversionError(
                    f"Slide {number} has characters {_FONT} cannot draw"
                ) from e


def render_pdf(slides: list[list[str]], output_path: Path) -> None:
    """Write one landscape page per slide."""
    page_width, page_height = landscape(letter)
    text_width = page_width - 2 * _MARGIN
    pdf = canvas.Canvas(str(output_path), pagesize=(page_width, page_height))

    for number, blocks in enumerate(slides, start=1):
        y = page_height - _MARGIN
        pdf.setFont(_FONT, _TITLE_SIZE)
        pdf.drawString(_MARGIN, y, f"Slide {number}")
        y -= _TITLE_SIZE * 2
        pdf.setFont(_FONT, _BODY_SIZE)
        for block in blocks:
            for paragraph in block.splitlines() or [""]:
                for line in simpleSplit(paragraph, _FONT, _BODY_SIZE, text_width) or [""]:
                    if y < _MARGIN:
                        pdf.showPage()
                        pdf.setFont(_FONT, _BODY_SIZE)
                        y = page_height - _MARGIN
                    pdf.drawString(_MARGIN, y, line)
                    y -= _BODY_SIZE * 1.4
            y -= _BODY_SIZE
        pdf.showPage()
    pdf.save()


class PresentationLibraryStrategy:
    """Converts ``.pptx`` files in-process, without any office suite."""

    name = "presentation-library"

    def applies_to(self, source: Path, kind: ConversionKind) -> bool:
        return kind is ConversionKind.PRESENTATION and source.suffix.lower() == ".pptx"

    async def convert(
        self, source: Path, kind: ConversionKind, output_path: Path
    ) -> None:
        await asyncio.to_thread(self._convert_sync, source, output_path)

    def _convert_sync(self, source: Path, output_path: Path) -> None:
        try:
            content = _read_slides(source)
        except Exception as e:
            raise ConversionError(f"Could not read presentation {source.name}: {e}") from e
        check_renderable(content)
        log.info("Rendering %d slide(s) from %s", len(content), source.name)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            render_pdf([blocks for blocks, _ in content], output_path)
        except Exception as e:
            raise ConversionError(f"Could not render PDF for {source.name}: {e}") from e
