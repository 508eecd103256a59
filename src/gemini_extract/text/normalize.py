"""Text normalization applied to assembled and directly decoded text.

Normalization is an ordered list of rules. Every rule only ever removes
characters, so applying the list until nothing changes always terminates, and
the result is a fixpoint: normalizing it again is a no-op.

The repeated-phrase rule is configurable. Its default phrase list covers the
fillers seen in transcribed lecture audio and is not meant to be complete.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import dataclasses
import re
from typing import Protocol, runtime_checkable


@runtime_checkable
class NormalizationRule(Protocol):
    """A single text rewrite that never lengthens its input."""

    name: str

    def apply(self, text: str) -> str: ...  # noqa: D102


@dataclasses.dataclass(frozen=True, slots=True)
class RegexRule:
    """Replace every match of ``pattern`` with ``replacement``."""

    name: str
    pattern: re.Pattern[str]
    replacement: str = ""

    def apply(self, text: str) -> str:
        return self.pattern.sub(self.replacement, text)


@dataclasses.dataclass(frozen=True, slots=True)
class StripRule:
    """Trim leading and trailing whitespace."""

    name: str = "strip"

    def apply(self, text: str) -> str:
        return text.strip()


DEFAULT_FILLER_PHRASES: tuple[str, ...] = (
    "طب ايه رايك؟ طب ايه هو الهدف بتاعه؟",
    "طب ايه رايك؟",
    "طب ايه هو الهدف بتاعه؟",
    "نعم",
    "اه",
    "صح",
    "نفس",
    "كده",
    "okay",
    "yes",
    "ok",
    "no",
)


class RepeatedPhraseRule:
    """Collapse back-to-back repetitions of known filler phrases.

    Matches are bounded by non-word characters on both sides, so "no no" is
    collapsed while "no notice" is left alone. Latin phrases match
    case-insensitively and keep the casing of their first occurrence.
    """

    name = "repeated-phrases"

    def __init__(self, phrases: Iterable[str] = DEFAULT_FILLER_PHRASES):
        self.phrases = tuple(p for p in phrases if p.strip())
        self._patterns = tuple(self._compile(p) for p in self.phrases)

    @staticmethod
    def _compile(phrase: str) -> re.Pattern[str]:
        escaped = re.escape(phrase)
        return re.compile(
            rf"(?<!\w)({escaped})(?:\s*{escaped})+(?!\w)",
            re.IGNORECASE,
        )

    def apply(self, text: str) -> str:
        for pattern in self._patterns:
            text = pattern.sub(r"\1", text)
        return text

    def __repr__(self) -> str:
        return f"RepeatedPhraseRule(phrases={self.phrases!r})"


_HSPACE = r"[ \t\f\v\u00a0\u200b-\u200d\ufeff]"

CODE_FENCE_RULE = RegexRule(
    name="code-fences",
    pattern=re.compile(r"^[ \t]*```[\w+-]*[ \t]*$\n?", re.MULTILINE),
)
LINE_ENDING_RULE = RegexRule(
    name="line-endings",
    pattern=re.compile(r"\r\n?"),
    replacement="\n",
)
EDGE_WHITESPACE_RULE = RegexRule(
    name="whitespace-around-newlines",
    pattern=re.compile(rf"{_HSPACE}+(?=\n)|(?<=\n){_HSPACE}+"),
)
BLANK_LINES_RULE = RegexRule(
    name="blank-lines",
    pattern=re.compile(r"\n{3,}"),
    replacement="\n\n",
)
# Same-line runs only: "." does not cross newlines
REPEATED_RUN_RULE = RegexRule(
    name="repeated-runs",
    pattern=re.compile(r"(.{10,100}?)\1+"),
    replacement=r"\1",
)
SEPARATOR_LINE_RULE = RegexRule(
    name="separator-lines",
    pattern=re.compile(r"^[ \t]*[-.:*]{2,}[ \t]*$", re.MULTILINE),
)

DEFAULT_RULES: tuple[NormalizationRule, ...] = (
    CODE_FENCE_RULE,
    LINE_ENDING_RULE,
    EDGE_WHITESPACE_RULE,
    BLANK_LINES_RULE,
    REPEATED_RUN_RULE,
    RepeatedPhraseRule(),
    SEPARATOR_LINE_RULE,
    StripRule(),
)


def normalize_text(
    text: str, rules: Sequence[NormalizationRule] | None = None
) -> str:
    """Apply ``rules`` in order, repeatedly, until the text stops changing."""
    if not text:
        return ""
    active_rules = DEFAULT_RULES if rules is None else tuple(rules)
    while True:
        updated = text
        for rule in active_rules:
            updated = rule.apply(updated)
        if updated == text:
            return updated
        text = updated
