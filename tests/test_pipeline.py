"""Tests for delivering complete and streamed replies to a sink."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from wungus.delivery import DeliveryError, ListSink, deliver_reply, deliver_stream
from wungus.delivery.sink import SegmentSink, TypingSink
from wungus.markdown.chunk import split_segments


class TypingListSink(ListSink):
    def __init__(self):
        super().__init__()
        self.events: list[str] = []

    async def send(self, segment: str) -> None:
        self.events.append("send")
        await super().send(segment)

    async def start_typing(self) -> None:
        self.events.append("start")

    async def stop_typing(self) -> None:
        self.events.append("stop")


async def _fragments(text: str, size: int = 13):
    for i in range(0, len(text), size):
        yield text[i:i + size]


def _long_reply() -> str:
    return "Here you go:\n```python\n" + "result = compute(value)\n" * 200 + "```\nDone."


def test_sinks_satisfy_protocols():
    assert isinstance(ListSink(), SegmentSink)
    assert not isinstance(ListSink(), TypingSink)
    assert isinstance(TypingListSink(), TypingSink)


class TestDeliverReply:
    async def test_sends_every_segment_in_order(self):
        sink = ListSink()
        text = _long_reply()
        sent = await deliver_reply(text, sink)

        assert sink.segments == split_segments(text)
        assert sent == len(sink.segments) > 1

    async def test_short_reply_is_one_message(self):
        sink = ListSink()
        assert await deliver_reply("pong", sink) == 1
        assert sink.segments == ["pong"]

    async def test_empty_reply_sends_nothing(self):
        sink = ListSink()
        assert await deliver_reply("", sink) == 0
        assert sink.segments == []

    async def test_blank_segment_not_sent(self):
        sink = ListSink()
        text = "x" * 2000 + "\n"
        assert await deliver_reply(text, sink) == 1
        assert sink.segments == ["x" * 2000]

    async def test_custom_max_length(self):
        sink = ListSink()
        await deliver_reply("word " * 100, sink, max_length=50)
        assert all(len(s) <= 50 for s in sink.segments)

    async def test_typing_wraps_delivery(self):
        sink = TypingListSink()
        await deliver_reply("hello", sink, typing=True)
        assert sink.events == ["start", "send", "stop"]

    async def test_typing_stopped_on_failure(self):
        sink = TypingListSink()
        sink.send = AsyncMock(side_effect=DeliveryError("boom"))
        with pytest.raises(DeliveryError):
            await deliver_reply("hello", sink, typing=True)
        assert sink.events == ["start", "stop"]


class TestDeliverStream:
    async def test_matches_single_split(self):
        sink = ListSink()
        text = _long_reply()
        sent = await deliver_stream(_fragments(text), sink)

        assert sink.segments == split_segments(text)
        assert sent == len(sink.segments)

    async def test_segments_sent_before_stream_ends(self):
        sink = ListSink()
        text = _long_reply()
        seen_during_stream: list[int] = []

        async def fragments():
            async for fragment in _fragments(text):
                seen_during_stream.append(len(sink.segments))
                yield fragment

        await deliver_stream(fragments(), sink)
        assert max(seen_during_stream) >= 1

    async def test_producer_failure_flushes_buffer_then_raises(self):
        sink = ListSink()

        async def failing():
            yield "```js\nconsole.log('partial"
            raise RuntimeError("model disconnected")

        with pytest.raises(RuntimeError, match="model disconnected"):
            await deliver_stream(failing(), sink)
        assert sink.segments == ["```js\nconsole.log('partial\n```"]

    async def test_delivery_error_propagates_without_flush(self):
        sink = TypingListSink()
        sink.send = AsyncMock(side_effect=DeliveryError("gone"))

        with pytest.raises(DeliveryError):
            await deliver_stream(_fragments("a" * 5000, 500), sink, typing=True)
        assert sink.send.await_count == 1
        assert sink.events == ["start", "stop"]

    async def test_sink_failure_is_not_retried_as_stream_failure(self):
        sink = TypingListSink()
        sink.send = AsyncMock(side_effect=RuntimeError("bad payload"))

        with pytest.raises(RuntimeError):
            await deliver_stream(_fragments("a" * 5000, 500), sink, typing=True)
        # The failing sink is not called again to flush buffered text.
        assert sink.send.await_count == 1
        assert sink.events == ["start", "stop"]
