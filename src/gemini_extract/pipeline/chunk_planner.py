"""Chunk planning: split a payload into size-bounded byte ranges.

Pure and deterministic. Sizes up to the single-request ceiling stay whole;
larger payloads use a chunk size that grows with the payload so very large
files do not explode into hundreds of requests.
"""

from __future__ import annotations

import logging

from gemini_extract.constants import (
    CHUNK_SIZE_TIERS,
    DEFAULT_CHUNK_SIZE,
    MAX_TOTAL_SIZE,
    SINGLE_REQUEST_CEILING,
)
from gemini_extract.core.types import ByteRange, Chunk
from gemini_extract.exceptions import OversizeError

log = logging.getLogger(__name__)


def select_chunk_size(size_bytes: int) -> int:
    """Chunk size for a payload larger than the single-request ceiling."""
    for lower_bound, chunk_size in CHUNK_SIZE_TIERS:
        if size_bytes > lower_bound:
            return chunk_size
    return DEFAULT_CHUNK_SIZE


def plan_chunks(size_bytes: int) -> tuple[ByteRange, ...]:
    """Cover ``[0, size_bytes)`` with contiguous, non-overlapping ranges.

    Raises:
        ValueError: If ``size_bytes`` is negative.
        OversizeError: If ``size_bytes`` exceeds the absolute maximum.
    """
    if size_bytes < 0:
        raise ValueError(f"size_bytes must be >= 0, got {size_bytes}")
    if size_bytes > MAX_TOTAL_SIZE:
        raise OversizeError(size_bytes, MAX_TOTAL_SIZE)
    if size_bytes <= SINGLE_REQUEST_CEILING:
        return (ByteRange(0, size_bytes),)

    chunk_size = select_chunk_size(size_bytes)
    ranges = tuple(
        ByteRange(start, min(start + chunk_size, size_bytes))
        for start in range(0, size_bytes, chunk_size)
    )
    log.debug(
        "Planned %d chunks of up to %d bytes for %d-byte payload",
        len(ranges),
        chunk_size,
        size_bytes,
    )
    return ranges


def split_payload(
    payload: bytes | bytearray | memoryview, ranges: tuple[ByteRange, ...]
) -> tuple[Chunk, ...]:
    """Zero-copy chunk views over ``payload`` for the planned ``ranges``."""
    view = memoryview(payload)
    total = len(ranges)
    return tuple(
        Chunk(ordinal=index, total=total, data=view[r.start : r.end])
        for index, r in enumerate(ranges, start=1)
    )
