"""Resilient large-document text extraction with Gemini."""

import importlib.metadata
import logging

from gemini_extract.config import FrozenConfig, resolve_config
from gemini_extract.conversion import ConversionCascade, validate_pdf
from gemini_extract.core.types import (
    BatchExtractionSummary,
    ChunkOutcome,
    ConversionResult,
    ExtractionReport,
    FileExtractionResult,
    SourceFile,
)
from gemini_extract.exceptions import (
    APIError,
    ClientInitError,
    ConfigurationError,
    ConversionError,
    GeminiExtractError,
    InvariantViolationError,
    MissingKeyError,
    OutputWriteError,
    OversizeError,
)
from gemini_extract.orchestrator import ExtractionOrchestrator, create_orchestrator
from gemini_extract.pipeline import (
    BatchScheduler,
    RemoteExtractor,
    RetryingChunkProcessor,
    RetryPolicy,
    assemble,
    plan_chunks,
)
from gemini_extract.telemetry import TelemetryContext, TelemetryReporter
from gemini_extract.text import normalize_text

# Version handling
try:
    __version__ = importlib.metadata.version("gemini-extract")
except importlib.metadata.PackageNotFoundError:
    __version__ = "development"

# Set up a null handler for the library's root logger.
logging.getLogger(__name__).addHandler(logging.NullHandler())

# Public API
__all__ = [  # noqa: RUF022
    # Entry points
    "ExtractionOrchestrator",
    "create_orchestrator",
    "resolve_config",
    "FrozenConfig",
    # Pipeline components
    "BatchScheduler",
    "ConversionCascade",
    "RemoteExtractor",
    "RetryPolicy",
    "RetryingChunkProcessor",
    "assemble",
    "normalize_text",
    "plan_chunks",
    "validate_pdf",
    # Types
    "BatchExtractionSummary",
    "ChunkOutcome",
    "ConversionResult",
    "ExtractionReport",
    "FileExtractionResult",
    "SourceFile",
    # Telemetry (extension points)
    "TelemetryContext",
    "TelemetryReporter",
    # Exceptions
    "APIError",
    "ClientInitError",
    "ConfigurationError",
    "ConversionError",
    "GeminiExtractError",
    "InvariantViolationError",
    "MissingKeyError",
    "OutputWriteError",
    "OversizeError",
]
