"""
File type tables: MIME lookup, text detection and conversion routing
"""  # noqa: D200, D212, D415

import mimetypes
from pathlib import Path

from gemini_extract.constants import DEFAULT_MIME_TYPE
from gemini_extract.core.types import ConversionKind

# Initialize mimetypes database
mimetypes.init()

# Preferred mapping; takes precedence over the platform mimetypes database
EXTENSION_TO_MIME: dict[str, str] = {
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".html": "text/html",
    ".css": "text/css",
    ".js": "text/javascript",
    ".json": "application/json",
    ".xml": "application/xml",
    ".csv": "text/csv",
    ".rtf": "text/rtf",
    ".pdf": "application/pdf",
    # Images
    ".png": "image/png",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".webp": "image/webp",
    ".heic": "image/heic",
    ".heif": "image/heif",
    ".gif": "image/gif",
    # Audio
    ".wav": "audio/wav",
    ".mp3": "audio/mpeg",
    ".aiff": "audio/aiff",
    ".aac": "audio/aac",
    ".ogg": "audio/ogg",
    ".flac": "audio/flac",
    ".m4a": "audio/m4a",
    # Microsoft Office
    ".doc": "application/msword",
    ".docx": (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    ),
    ".ppt": "application/vnd.ms-powerpoint",
    ".pptx": (
        "application/vnd.openxmlformats-officedocument.presentationml.presentation"
    ),
    ".xls": "application/vnd.ms-excel",
    ".xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}

TEXT_EXTENSIONS = frozenset(
    {".txt", ".md", ".html", ".css", ".js", ".json", ".xml", ".csv", ".rtf"}
)

TEXT_MIME_TYPES = frozenset(
    {
        "text/plain",
        "text/markdown",
        "text/html",
        "text/css",
        "text/javascript",
        "text/csv",
        "text/rtf",
        "text/xml",
        "application/json",
        "application/xml",
    }
)

CONVERSION_KINDS: dict[str, ConversionKind] = {
    ".doc": ConversionKind.WORD,
    ".docx": ConversionKind.WORD,
    ".ppt": ConversionKind.PRESENTATION,
    ".pptx": ConversionKind.PRESENTATION,
    ".xls": ConversionKind.SPREADSHEET,
    ".xlsx": ConversionKind.SPREADSHEET,
}


def get_mime_type(name: str | Path) -> str:
    """MIME type from the extension, falling back to the octet-stream default."""
    path = Path(name)
    extension = path.suffix.lower()
    if extension in EXTENSION_TO_MIME:
        return EXTENSION_TO_MIME[extension]
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type or DEFAULT_MIME_TYPE


def is_text_like(name: str | Path, mime_type: str | None = None) -> bool:
    """Whether the file can be decoded locally instead of sent for extraction."""
    if Path(name).suffix.lower() in TEXT_EXTENSIONS:
        return True
    if mime_type:
        base_mime = mime_type.split(";")[0].strip().lower()
        return base_mime in TEXT_MIME_TYPES
    return False


def conversion_kind(name: str | Path) -> ConversionKind | None:
    """Office family that must be converted to PDF first, if any."""
    return CONVERSION_KINDS.get(Path(name).suffix.lower())
