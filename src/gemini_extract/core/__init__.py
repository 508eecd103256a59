"""Core data types for the extraction pipeline."""

from .types import (
    AssembledText,
    BatchExtractionSummary,
    ByteRange,
    Chunk,
    ChunkDetail,
    ChunkOutcome,
    ConversionAttempt,
    ConversionKind,
    ConversionResult,
    ExtractionReport,
    Failure,
    FileExtractionResult,
    Result,
    SourceFile,
    Success,
)

__all__ = [
    "AssembledText",
    "BatchExtractionSummary",
    "ByteRange",
    "Chunk",
    "ChunkDetail",
    "ChunkOutcome",
    "ConversionAttempt",
    "ConversionKind",
    "ConversionResult",
    "ExtractionReport",
    "Failure",
    "FileExtractionResult",
    "Result",
    "SourceFile",
    "Success",
]
