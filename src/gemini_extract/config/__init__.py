"""Configuration management for Gemini text extraction.

Key components:
- ExtractSettings: pydantic-settings schema reading GEMINI_* variables
- FrozenConfig: Immutable configuration for pipeline execution
- resolve_config: Resolve once from overrides, environment and defaults
"""

from .api import check_environment, resolve_config
from .schema import ExtractSettings
from .types import ConfigOrigin, FrozenConfig, SourceMap

__all__ = [
    "ConfigOrigin",
    "ExtractSettings",
    "FrozenConfig",
    "SourceMap",
    "check_environment",
    "resolve_config",
]
