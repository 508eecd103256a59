"""Text cleanup for extracted output."""

from .normalize import (
    DEFAULT_FILLER_PHRASES,
    DEFAULT_RULES,
    NormalizationRule,
    RegexRule,
    RepeatedPhraseRule,
    StripRule,
    normalize_text,
)

__all__ = [
    "DEFAULT_FILLER_PHRASES",
    "DEFAULT_RULES",
    "NormalizationRule",
    "RegexRule",
    "RepeatedPhraseRule",
    "StripRule",
    "normalize_text",
]
