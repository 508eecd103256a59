"""Chunked concurrent extraction engine."""

from .batch_scheduler import BatchProgress, BatchScheduler
from .chunk_planner import plan_chunks, select_chunk_size, split_payload
from .remote_extractor import ClientHandle, RemoteExtractor, is_valid_api_key
from .result_assembler import assemble
from .retry import RetryDecision, RetryingChunkProcessor, RetryPolicy

__all__ = [
    "BatchProgress",
    "BatchScheduler",
    "ClientHandle",
    "RemoteExtractor",
    "RetryDecision",
    "RetryPolicy",
    "RetryingChunkProcessor",
    "assemble",
    "is_valid_api_key",
    "plan_chunks",
    "select_chunk_size",
    "split_payload",
]
