"""Streaming decoders for chunked HTTP response bodies."""

from terrapulse.streaming.sse import (
    DeltaDecoder,
    LineKind,
    StreamState,
    aiter_snapshots,
    classify_line,
    decode_stream,
    extract_delta_content,
    iter_snapshots,
)

__all__ = [
    "DeltaDecoder",
    "LineKind",
    "StreamState",
    "aiter_snapshots",
    "classify_line",
    "decode_stream",
    "extract_delta_content",
    "iter_snapshots",
]
