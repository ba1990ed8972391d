"""Incremental splitting of a reply that arrives as a stream of fragments."""

from __future__ import annotations

from typing import AsyncIterable, AsyncIterator, Iterable, Iterator

from loguru import logger

from wungus.markdown.chunk import MAX_LENGTH, SplitMode, split_segments
from wungus.markdown.fence import FENCE


def _hold_back(window: str) -> tuple[str, str]:
    """Split *window* into text safe to split now and a held-back tail.

    The last line may still be growing. If it could become a fence line
    ("`", "``", or anything starting with the marker) it is held back whole,
    with its line break, until it is complete. Otherwise its trailing
    whitespace and backticks are held back: where a long line gets cut
    depends on whether a space or a marker follows.
    """
    head, sep, last = window.rpartition("\n")
    stripped = last.lstrip()
    if stripped.startswith(FENCE) or FENCE.startswith(stripped):
        return head, sep + last
    end = len(last)
    while end and (last[end - 1] == "`" or last[end - 1].isspace()):
        end -= 1
    return head + sep + last[:end], last[end:]


class StreamingAssembler:
    """
    Turn text fragments into finished segments as soon as they are known.

    Fragments accumulate in a window. Once the window is longer than
    *max_length* it is split in streaming mode: every segment but the last is
    final and handed back, the last one (possibly mid-line or inside an open
    code fence) stays in the window. A trailing partial line that could still
    turn into a fence line is not split until its line break arrives.
    :meth:`flush` splits whatever is left with fences closed.

    The segments returned across all :meth:`push` calls plus :meth:`flush`
    are the same as ``split_segments`` on the concatenated fragments, however
    the text was fragmented.

    Not safe for concurrent producers; use one assembler per reply.
    """

    def __init__(self, max_length: int = MAX_LENGTH) -> None:
        self.max_length = max_length
        # None means nothing buffered; "" is a carried-over empty segment.
        self._window: str | None = None
        self.emitted = 0

    @property
    def window(self) -> str:
        return self._window or ""

    @property
    def pending(self) -> bool:
        return self._window is not None

    def push(self, fragment: str) -> list[str]:
        """Append *fragment*; return the segments completed by it."""
        if not fragment:
            return []
        window = self.window + fragment
        self._window = window
        if len(window) <= self.max_length:
            return []

        ready, held = _hold_back(window)
        *done, tail = split_segments(
            ready, mode=SplitMode.STREAMING, max_length=self.max_length
        )
        if not done:
            return []
        self._window = tail + held
        self.emitted += len(done)
        return done

    def flush(self) -> list[str]:
        """Finish the stream and return the remaining segments."""
        if self._window is None:
            return []
        segments = split_segments(
            self._window, mode=SplitMode.FINAL, max_length=self.max_length
        )
        self._window = None
        self.emitted += len(segments)
        logger.debug(f"Stream flushed: {self.emitted} segments in total")
        return segments


def assemble(fragments: Iterable[str], max_length: int = MAX_LENGTH) -> Iterator[str]:
    """Yield segments for a synchronous stream of fragments."""
    assembler = StreamingAssembler(max_length)
    for fragment in fragments:
        yield from assembler.push(fragment)
    yield from assembler.flush()


async def assemble_async(
    fragments: AsyncIterable[str], max_length: int = MAX_LENGTH
) -> AsyncIterator[str]:
    """Yield segments for an async stream of fragments (e.g. LLM tokens)."""
    assembler = StreamingAssembler(max_length)
    async for fragment in fragments:
        for segment in assembler.push(fragment):
            yield segment
    for segment in assembler.flush():
        yield segment
