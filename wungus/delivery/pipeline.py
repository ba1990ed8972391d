"""Split replies and hand the segments to a sink, in order."""

from __future__ import annotations

from typing import AsyncIterable, Iterable

from loguru import logger

from wungus.delivery.sink import SegmentSink, TypingSink
from wungus.markdown.chunk import MAX_LENGTH, split_segments
from wungus.markdown.stream import StreamingAssembler


async def _send_all(sink: SegmentSink, segments: Iterable[str]) -> int:
    sent = 0
    for segment in segments:
        if not segment.strip():
            continue
        await sink.send(segment)
        sent += 1
    return sent


async def deliver_reply(
    text: str,
    sink: SegmentSink,
    *,
    max_length: int = MAX_LENGTH,
    typing: bool = False,
) -> int:
    """Send a complete reply. Returns the number of messages sent."""
    if typing and isinstance(sink, TypingSink):
        await sink.start_typing()
    try:
        return await _send_all(sink, split_segments(text, max_length=max_length))
    finally:
        if typing and isinstance(sink, TypingSink):
            await sink.stop_typing()


async def deliver_stream(
    fragments: AsyncIterable[str],
    sink: SegmentSink,
    *,
    max_length: int = MAX_LENGTH,
    typing: bool = False,
) -> int:
    """
    Send a reply while it is still being generated.

    Segments go out as soon as the assembler completes them. If the fragment
    source fails, the text buffered so far is still sent before the error
    propagates. Returns the number of messages sent.
    """
    assembler = StreamingAssembler(max_length)
    sent = 0
    if typing and isinstance(sink, TypingSink):
        await sink.start_typing()
    try:
        iterator = aiter(fragments)
        while True:
            # Only failures of the fragment source are caught here.
            try:
                fragment = await anext(iterator)
            except StopAsyncIteration:
                break
            except Exception as e:
                logger.warning(f"Fragment stream failed after {sent} messages, sending buffered text: {e}")
                await _send_all(sink, assembler.flush())
                raise
            sent += await _send_all(sink, assembler.push(fragment))
        sent += await _send_all(sink, assembler.flush())
    finally:
        if typing and isinstance(sink, TypingSink):
            await sink.stop_typing()
    logger.debug(f"Delivered streamed reply in {sent} messages")
    return sent
