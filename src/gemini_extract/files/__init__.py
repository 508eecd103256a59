"""File type detection helpers"""  # noqa: D415

from .types import (
    CONVERSION_KINDS,
    EXTENSION_TO_MIME,
    TEXT_EXTENSIONS,
    conversion_kind,
    get_mime_type,
    is_text_like,
)

__all__ = [
    "CONVERSION_KINDS",
    "EXTENSION_TO_MIME",
    "TEXT_EXTENSIONS",
    "conversion_kind",
    "get_mime_type",
    "is_text_like",
]
