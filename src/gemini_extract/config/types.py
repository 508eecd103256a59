"""Core configuration data types, following resolve-once, freeze-then-flow."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from typing import Literal

ConfigOrigin = Literal["programmatic", "env", "default"]
SourceMap = Mapping[str, ConfigOrigin]


@dataclass(frozen=True)
class FrozenConfig:
    """Immutable configuration handed to every pipeline component.

    Any attempt to modify this object raises an exception. The API key is
    redacted from both ``str`` and ``repr``.
    """

    api_key: str | None
    model: str
    temperature: float
    max_output_tokens: int
    batch_width: int
    batch_delay_seconds: float
    max_attempts: int
    backoff_base_seconds: float
    converter_timeout_seconds: float
    converter_attempts: int
    converter_retry_delay_seconds: float
    pdf_min_size: int
    origin: SourceMap

    def __str__(self) -> str:
        """String representation with redacted API key for safe logging."""
        parts = []
        for f in fields(self):
            if f.name == "origin":
                continue
            value = getattr(self, f.name)
            if f.name == "api_key":
                value = "[REDACTED]" if value else None
            parts.append(f"{f.name}={value!r}")
        return f"FrozenConfig({', '.join(parts)})"

    def __repr__(self) -> str:
        """Representation with redacted API key for safe debugging."""
        return self.__str__()

    def audit(self) -> str:
        """Report where each field came from, without revealing secrets."""
        lines = []
        for f in fields(self):
            if f.name == "origin":
                continue
            origin = self.origin.get(f.name, "default")
            if f.name == "api_key":
                shown = "None" if self.api_key is None else "<redacted>"
            elif origin == "env":
                shown = f"GEMINI_{f.name.upper()}={getattr(self, f.name)}"
            else:
                shown = str(getattr(self, f.name))
            lines.append(f"{f.name}: {origin}:{shown}")
        return "\n".join(lines)
