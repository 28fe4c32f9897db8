"""Incremental decoder for chat-completion Server-Sent-Events streams.

Consumes the raw chunks of an HTTP response body framed as
newline-delimited SSE lines carrying JSON chat-completion deltas, and
rebuilds the advice text as a monotonically growing string.

Line protocol (a subset of SSE):

1. ``:`` prefix: comment or keepalive, ignored.
2. blank after trimming: ignored.
3. ``data: `` prefix: the trimmed remainder is the payload:
   - ``[DONE]`` ends the session; later input is ignored.
   - otherwise a JSON object whose ``choices[0].delta.content`` string,
     when present and non-empty, is appended to the text.
4. anything else: ignored.

Partial lines are buffered until their newline arrives.  A data payload
that fails to parse is treated as truncated: the line goes back to the
front of the buffer and scanning stops until the next chunk.  At end of
stream the residual buffer is classified once more and anything still
unparsable is dropped.

Only text that passed a full JSON parse is ever emitted.  Each decoder
owns its own ``StreamState``; create one per HTTP request.
"""

from __future__ import annotations

import codecs
import enum
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from terrapulse.core.constants import COMMENT_PREFIX, DATA_PREFIX, DONE_SENTINEL

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator

logger = logging.getLogger("terrapulse.streaming.sse")


class LineKind(enum.Enum):
    """Classification of a single SSE line."""

    IGNORED = "ignored"
    CONTENT = "content"
    DONE = "done"
    MALFORMED = "malformed"


@dataclass(slots=True)
class StreamState:
    """Mutable accumulator for one decode session.

    Attributes:
        buffer: Text received but not yet terminated by a newline
            (or pushed back after a failed parse).
        text: Accumulated content so far.
        done: Set once the ``[DONE]`` sentinel has been seen.
    """

    buffer: str = ""
    text: str = ""
    done: bool = False


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------


def extract_delta_content(event: object) -> str:
    """Return ``choices[0].delta.content`` from a parsed event, or ``""``.

    Missing or mistyped levels yield an empty string.
    """
    if not isinstance(event, dict):
        return ""
    choices = event.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    delta = first.get("delta")
    if not isinstance(delta, dict):
        return ""
    content = delta.get("content")
    return content if isinstance(content, str) else ""


def classify_line(line: str) -> tuple[LineKind, str]:
    """Classify one line (without its newline).

    Returns:
        ``(kind, content)`` where ``content`` is the delta text for
        ``LineKind.CONTENT`` and ``""`` otherwise.
    """
    if line.startswith(COMMENT_PREFIX) or not line.strip():
        return LineKind.IGNORED, ""
    if not line.startswith(DATA_PREFIX):
        return LineKind.IGNORED, ""

    payload = line[len(DATA_PREFIX) :].strip()
    if payload == DONE_SENTINEL:
        return LineKind.DONE, ""

    try:
        event = json.loads(payload)
    except json.JSONDecodeError:
        return LineKind.MALFORMED, ""

    content = extract_delta_content(event)
    if not content:
        return LineKind.IGNORED, ""
    return LineKind.CONTENT, content


# ---------------------------------------------------------------------------
# Decoder
# ---------------------------------------------------------------------------


class DeltaDecoder:
    """Stateful decoder for a single streamed response.

    Example usage::

        decoder = DeltaDecoder()
        for chunk in response.iter_bytes():
            for snapshot in decoder.feed(chunk):
                render(snapshot)
        for snapshot in decoder.close():
            render(snapshot)
    """

    def __init__(self) -> None:
        self._state = StreamState()
        self._utf8 = codecs.getincrementaldecoder("utf-8")(errors="replace")
        self._closed = False

    @property
    def text(self) -> str:
        """Accumulated content so far."""
        return self._state.text

    @property
    def done(self) -> bool:
        """Whether the ``[DONE]`` sentinel has been seen."""
        return self._state.done

    @property
    def pending(self) -> str:
        """Buffered text not yet consumed."""
        return self._state.buffer

    def feed(self, chunk: bytes | str) -> list[str]:
        """Consume one chunk of the response body.

        Bytes are decoded incrementally, so a multi-byte UTF-8 character
        may straddle chunks.

        Returns:
            The growing-text snapshots produced by this chunk, oldest
            first.  Empty when the chunk completed no content line.
        """
        state = self._state
        if state.done or self._closed:
            return []

        if isinstance(chunk, bytes):
            chunk = self._utf8.decode(chunk)
        state.buffer += chunk

        snapshots: list[str] = []
        while not state.done:
            newline_index = state.buffer.find("\n")
            if newline_index == -1:
                break

            line = state.buffer[:newline_index]
            state.buffer = state.buffer[newline_index + 1 :]
            if line.endswith("\r"):
                line = line[:-1]

            kind, content = classify_line(line)
            if kind is LineKind.MALFORMED:
                # Most likely truncated mid-chunk: wait for more bytes.
                state.buffer = line + "\n" + state.buffer
                logger.debug("Deferring unparsable data line | length=%d", len(line))
                break
            self._apply(kind, content, snapshots)

        return snapshots

    def close(self) -> list[str]:
        """Flush the residual buffer at end of stream.

        Fragments that still fail to parse are dropped; no more data is
        coming to complete them.

        Returns:
            Snapshots produced by the flush.
        """
        if self._closed:
            return []
        self._closed = True

        state = self._state
        state.buffer += self._utf8.decode(b"", final=True)
        residual, state.buffer = state.buffer, ""

        snapshots: list[str] = []
        if state.done or not residual.strip():
            return snapshots

        for raw in residual.split("\n"):
            kind, content = classify_line(raw.rstrip("\r"))
            if kind is LineKind.MALFORMED:
                logger.debug("Dropping unparsable data line at end of stream | length=%d", len(raw))
                continue
            self._apply(kind, content, snapshots)
            if state.done:
                break

        return snapshots

    def _apply(self, kind: LineKind, content: str, snapshots: list[str]) -> None:
        state = self._state
        if kind is LineKind.DONE:
            state.done = True
        elif kind is LineKind.CONTENT:
            state.text += content
            snapshots.append(state.text)


# ---------------------------------------------------------------------------
# Stream helpers
# ---------------------------------------------------------------------------


def iter_snapshots(chunks: Iterable[bytes | str]) -> Iterator[str]:
    """Yield growing-text snapshots from a chunk source.

    A fresh decoder is used per call.  Reading stops as soon as
    ``[DONE]`` is seen.
    """
    decoder = DeltaDecoder()
    for chunk in chunks:
        yield from decoder.feed(chunk)
        if decoder.done:
            return
    yield from decoder.close()


async def aiter_snapshots(chunks: AsyncIterable[bytes | str]) -> AsyncIterator[str]:
    """Async counterpart of ``iter_snapshots``."""
    decoder = DeltaDecoder()
    async for chunk in chunks:
        for snapshot in decoder.feed(chunk):
            yield snapshot
        if decoder.done:
            return
    for snapshot in decoder.close():
        yield snapshot


def decode_stream(chunks: Iterable[bytes | str]) -> str:
    """Decode a complete chunk source and return the final text."""
    text = ""
    for snapshot in iter_snapshots(chunks):
        text = snapshot
    return text
