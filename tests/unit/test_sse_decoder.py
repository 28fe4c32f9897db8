"""Unit tests for the chat-completion SSE delta decoder."""

from __future__ import annotations

import json

import pytest

from terrapulse.streaming.sse import (
    DeltaDecoder,
    LineKind,
    aiter_snapshots,
    classify_line,
    decode_stream,
    extract_delta_content,
    iter_snapshots,
)
from tests.conftest import sse_data, sse_stream


def _feed_all(decoder: DeltaDecoder, *chunks: bytes | str) -> list[str]:
    snapshots: list[str] = []
    for chunk in chunks:
        snapshots.extend(decoder.feed(chunk))
    snapshots.extend(decoder.close())
    return snapshots


# ===========================================================================
# Line classification
# ===========================================================================


class TestClassifyLine:
    def test_comment_is_ignored(self) -> None:
        assert classify_line(": keepalive") == (LineKind.IGNORED, "")

    def test_blank_is_ignored(self) -> None:
        assert classify_line("   ") == (LineKind.IGNORED, "")

    def test_non_data_field_is_ignored(self) -> None:
        assert classify_line("event: message") == (LineKind.IGNORED, "")
        assert classify_line("id: 42") == (LineKind.IGNORED, "")

    def test_done_sentinel(self) -> None:
        assert classify_line("data: [DONE]") == (LineKind.DONE, "")

    def test_content_line(self) -> None:
        assert classify_line(sse_data("Hi").rstrip("\n")) == (LineKind.CONTENT, "Hi")

    def test_invalid_json_is_malformed(self) -> None:
        assert classify_line('data: {"choices": [') == (LineKind.MALFORMED, "")

    def test_empty_content_is_ignored(self) -> None:
        assert classify_line(sse_data("").rstrip("\n")) == (LineKind.IGNORED, "")

    def test_role_only_delta_is_ignored(self) -> None:
        line = "data: " + json.dumps({"choices": [{"delta": {"role": "assistant"}}]})
        assert classify_line(line) == (LineKind.IGNORED, "")


class TestExtractDeltaContent:
    @pytest.mark.parametrize(
        "event",
        [
            None,
            [],
            {},
            {"choices": []},
            {"choices": "nope"},
            {"choices": [None]},
            {"choices": [{}]},
            {"choices": [{"delta": None}]},
            {"choices": [{"delta": {"content": 7}}]},
        ],
    )
    def test_missing_levels_yield_empty(self, event: object) -> None:
        assert extract_delta_content(event) == ""

    def test_reads_first_choice(self) -> None:
        event = {"choices": [{"delta": {"content": "a"}}, {"delta": {"content": "b"}}]}
        assert extract_delta_content(event) == "a"


# ===========================================================================
# Decoder
# ===========================================================================


class TestDeltaDecoder:
    """Incremental decoding of a streamed body."""

    def test_two_deltas_then_done(self) -> None:
        body = sse_data("Hel") + sse_data("lo") + "data: [DONE]\n"
        decoder = DeltaDecoder()

        assert decoder.feed(body) == ["Hel", "Hello"]
        assert decoder.done
        assert decoder.text == "Hello"

    def test_line_split_across_chunks(self) -> None:
        line = sse_data("Hi")
        decoder = DeltaDecoder()

        assert decoder.feed(line[:14]) == []
        assert decoder.feed(line[14:]) == ["Hi"]

    def test_split_at_every_offset_gives_same_text(self) -> None:
        body = sse_stream("Soil ", "looks ", "dry.")
        for cut in range(1, len(body)):
            decoder = DeltaDecoder()
            _feed_all(decoder, body[:cut], body[cut:])
            assert decoder.text == "Soil looks dry.", f"cut={cut}"

    def test_comments_and_blank_lines_do_not_change_text(self) -> None:
        body = ": keepalive\n\n" + sse_data("A") + ": ping\n\n" + sse_data("B")
        assert _feed_all(DeltaDecoder(), body) == ["A", "AB"]

    def test_crlf_line_endings(self) -> None:
        body = sse_data("A").replace("\n", "\r\n") + "data: [DONE]\r\n"
        decoder = DeltaDecoder()

        assert decoder.feed(body) == ["A"]
        assert decoder.done

    def test_lines_after_done_are_ignored(self) -> None:
        body = sse_data("A") + "data: [DONE]\n" + sse_data("B")
        decoder = DeltaDecoder()

        assert decoder.feed(body) == ["A"]
        assert decoder.feed(sse_data("C")) == []
        assert decoder.close() == []
        assert decoder.text == "A"

    def test_snapshots_grow_monotonically(self) -> None:
        snapshots = _feed_all(DeltaDecoder(), sse_stream("a", "b", "c", "d"))
        for previous, current in zip(snapshots, snapshots[1:]):
            assert current.startswith(previous)
            assert len(current) > len(previous)

    def test_multibyte_character_split_between_chunks(self) -> None:
        body = sse_stream("72°F ☀")
        split = body.index("°".encode()) + 1
        decoder = DeltaDecoder()

        _feed_all(decoder, body[:split], body[split:])

        assert decoder.text == "72°F ☀"

    def test_unterminated_final_line_flushed_on_close(self) -> None:
        decoder = DeltaDecoder()
        assert decoder.feed(sse_data("tail").rstrip("\n")) == []
        assert decoder.close() == ["tail"]

    def test_close_is_idempotent(self) -> None:
        decoder = DeltaDecoder()
        decoder.feed(sse_data("x").rstrip("\n"))
        assert decoder.close() == ["x"]
        assert decoder.close() == []

    def test_feed_after_close_is_ignored(self) -> None:
        decoder = DeltaDecoder()
        decoder.close()
        assert decoder.feed(sse_data("late")) == []
        assert decoder.text == ""

    def test_interleaved_decoders_are_independent(self) -> None:
        body = sse_stream("same ", "stream")
        first, second = DeltaDecoder(), DeltaDecoder()
        out_first: list[str] = []
        out_second: list[str] = []
        for i in range(0, len(body), 3):
            out_first.extend(first.feed(body[i : i + 3]))
            out_second.extend(second.feed(body[i : i + 3]))
        out_first.extend(first.close())
        out_second.extend(second.close())

        assert out_first == out_second == ["same ", "same stream"]

    def test_no_done_sentinel_still_yields_text(self) -> None:
        assert decode_stream([sse_stream("a", "b", done=False)]) == "ab"


class TestMalformedLines:
    """Unparsable data lines are deferred, then dropped at end of stream."""

    def test_malformed_line_stays_in_buffer(self) -> None:
        decoder = DeltaDecoder()
        assert decoder.feed('data: {"choices": [\n') == []
        assert decoder.pending.startswith('data: {"choices": [')
        assert decoder.text == ""

    def test_malformed_line_blocks_following_lines_until_close(self) -> None:
        decoder = DeltaDecoder()
        body = sse_data("A") + "data: {oops\n" + sse_data("B")

        assert decoder.feed(body) == ["A"]
        assert decoder.close() == ["AB"]
        assert decoder.text == "AB"

    def test_malformed_fragment_dropped_on_close(self) -> None:
        decoder = DeltaDecoder()
        decoder.feed(sse_data("ok") + "data: {truncated")
        assert decoder.close() == []
        assert decoder.text == "ok"
        assert decoder.pending == ""

    def test_never_emits_unparsed_text(self) -> None:
        decoder = DeltaDecoder()
        snapshots = _feed_all(decoder, 'data: {"choices": [{"delta": {"content": "leak"\n')
        assert snapshots == []
        assert "leak" not in decoder.text

    def test_done_during_flush_stops_remaining_lines(self) -> None:
        decoder = DeltaDecoder()
        body = "data: {bad\n" + "data: [DONE]\n" + sse_data("after")
        decoder.feed(body)
        assert decoder.close() == []
        assert decoder.done
        assert decoder.text == ""


# ===========================================================================
# Stream helpers
# ===========================================================================


class TestStreamHelpers:
    def test_iter_snapshots_stops_at_done(self) -> None:
        consumed: list[bytes] = []

        def chunks():
            for chunk in (sse_data("a").encode(), b"data: [DONE]\n", sse_data("b").encode()):
                consumed.append(chunk)
                yield chunk

        assert list(iter_snapshots(chunks())) == ["a"]
        assert len(consumed) == 2

    def test_iter_snapshots_uses_fresh_decoder(self) -> None:
        body = [sse_stream("x")]
        assert list(iter_snapshots(body)) == ["x"]
        assert list(iter_snapshots(body)) == ["x"]

    def test_decode_stream_returns_final_text(self) -> None:
        assert decode_stream([sse_stream("Irrigate ", "tonight.")]) == "Irrigate tonight."

    def test_decode_stream_empty_source(self) -> None:
        assert decode_stream([]) == ""

    @pytest.mark.asyncio
    async def test_aiter_snapshots(self) -> None:
        async def chunks():
            body = sse_stream("one ", "two")
            for i in range(0, len(body), 7):
                yield body[i : i + 7]

        snapshots = [s async for s in aiter_snapshots(chunks())]

        assert snapshots == ["one ", "one two"]

    @pytest.mark.asyncio
    async def test_aiter_snapshots_flushes_unterminated_line(self) -> None:
        async def chunks():
            yield sse_data("end").rstrip("\n").encode()

        assert [s async for s in aiter_snapshots(chunks())] == ["end"]
