"""Plain text splitting into message-sized segments with fence-awareness."""

from __future__ import annotations

import enum

from loguru import logger

from wungus.markdown.fence import FENCE, FenceState, find_fence_opener, toggles_fence

MAX_LENGTH = 2000
# Smallest limit at which a bare re-opened fence still leaves half a segment
# for content.
MIN_LENGTH = 16

# Appended to a segment to close a fence left open at the split point.
_CLOSE = "\n" + FENCE


class SplitMode(enum.Enum):
    """Whether the text handed to the splitter is the whole reply."""

    FINAL = "final"  # close a fence still open at the end
    STREAMING = "streaming"  # more text follows, leave a trailing fence open


def _looks_like_fence(text: str) -> bool:
    return text.lstrip().startswith(FENCE)


def _cut(text: str, limit: int) -> tuple[str, str]:
    """Cut one piece of at most *limit* characters off the front of *text*.

    Returns ``(piece, rest)``. The rest never starts with a fence marker when
    it can be helped, so a cut never turns into a fence line of its own.
    """
    space = text.rfind(" ", 0, limit + 1)
    if space >= limit / 2 and not _looks_like_fence(text[space + 1:]):
        return text[:space], text[space + 1:]
    for end in range(limit, limit // 2, -1):
        if not _looks_like_fence(text[end:]):
            return text[:end], text[end:]
    return text[:limit], text[limit:]


def split_long_line(line: str, limit: int) -> list[str]:
    """Cut a single line into pieces of at most *limit* characters.

    Cuts at the last space within the limit and drops that space. When the
    only space sits in the first half of the window (or there is none), the
    line is hard-cut at the limit instead.
    """
    pieces: list[str] = []
    remaining = line
    while len(remaining) > limit:
        piece, remaining = _cut(remaining, limit)
        pieces.append(piece)
    if remaining:
        pieces.append(remaining)
    return pieces


class _Splitter:
    """Greedy line accumulator. One instance per split call.

    While a fence is open the accumulator always holds the line that opened
    it (the original opener or a re-opened copy), so splitting the text of the
    accumulator again ends in the same state.
    """

    def __init__(self, lines: list[str], max_length: int) -> None:
        self.lines = lines
        self.max_length = max_length
        self.segments: list[str] = []
        self.fence = FenceState()
        self._acc: list[str] = []
        self._acc_len = 0

    def _fits(self, length: int) -> bool:
        # An open fence keeps room for the closing marker.
        reserve = len(_CLOSE) if self.fence.open else 0
        return length + reserve <= self.max_length

    def _shares_segment(self, head: str) -> bool:
        return len(head) + 1 + len(_CLOSE) <= self.max_length // 2

    def _reopen_line(self, opener: str) -> str:
        """The line that re-opens a block started by *opener*.

        A tag too long to leave room for content is replaced by a bare marker.
        """
        tag = opener.lstrip()
        return tag if self._shares_segment(tag) else FENCE

    def run(self, mode: SplitMode) -> list[str]:
        for line in self.lines:
            was_open = self.fence.open
            self.fence.feed(line)

            candidate = self._acc_len + (1 if self._acc else 0) + len(line)
            if self._fits(candidate):
                self._acc.append(line)
                self._acc_len = candidate
                continue

            if not was_open:
                self._flush()
                self._start(line)
                continue

            if self._acc and toggles_fence(self._acc[-1]):
                # The block opened on the last line: carry the opening line to
                # the next segment instead of sending an empty code block.
                head = self._acc.pop()
                self._flush()
            else:
                head = self._reopen_line(find_fence_opener(self._acc, len(self._acc)))
                self._flush(close=True)
            self._start(line, head)

        if self._acc:
            close = self.fence.open and mode is SplitMode.FINAL
            self._flush(close=close)
        return self.segments

    def _flush(self, close: bool = False) -> None:
        if not self._acc:
            return
        segment = "\n".join(self._acc)
        if close:
            segment += _CLOSE
        self.segments.append(segment)
        self._acc = []
        self._acc_len = 0

    def _start(self, line: str, head: str | None = None) -> None:
        """Open a fresh accumulator with *line*, after the fence line *head*."""
        head_len = len(head) + 1 if head is not None else 0
        if self._fits(head_len + len(line)):
            self._acc = ([head] if head is not None else []) + [line]
            self._acc_len = head_len + len(line)
            return

        if head is not None and not self._shares_segment(head):
            # No room for content next to this opening line: send it as an
            # empty block and continue under a shorter re-opened fence.
            self.segments.append(head + _CLOSE)
            self._start(line, self._reopen_line(head))
            return

        # Too long for one segment. While the fence stays open every piece is
        # wrapped in its own open/close pair.
        close = len(_CLOSE) if self.fence.open else 0
        reopen = None
        if self.fence.open:
            reopen = head if head is not None else self._reopen_line(line)

        lead = head
        limit = self.max_length - head_len - close
        pieces: list[tuple[str | None, str]] = []
        remaining = line
        while len(remaining) > limit:
            piece, remaining = _cut(remaining, limit)
            pieces.append((lead, piece))
            lead = reopen
            limit = self.max_length - close - (len(reopen) + 1 if reopen is not None else 0)
        if remaining:
            pieces.append((lead, remaining))

        *done, (lead, last) = pieces
        for piece_head, piece in done:
            segment = piece if piece_head is None else f"{piece_head}\n{piece}"
            self.segments.append(segment + _CLOSE if self.fence.open else segment)
        self._acc = ([lead] if lead is not None else []) + [last]
        self._acc_len = (len(lead) + 1 if lead is not None else 0) + len(last)


def split_segments(
    text: str,
    *,
    mode: SplitMode = SplitMode.FINAL,
    max_length: int = MAX_LENGTH,
) -> list[str]:
    """Split *text* into segments of at most *max_length* characters.

    Lines are packed greedily. A split inside a fenced code block closes the
    fence at the end of the segment and re-opens it, language tag included,
    at the start of the next. In ``SplitMode.STREAMING`` a fence still open at
    the end of *text* is left open for the text that follows.

    Always returns at least one segment (``[""]`` for empty input).
    """
    if max_length < MIN_LENGTH:
        raise ValueError(f"max_length must be at least {MIN_LENGTH}, got {max_length}")

    segments = _Splitter(text.split("\n"), max_length).run(mode)
    if not segments:
        segments = [""]
    if len(segments) > 1:
        logger.debug(
            f"Split {len(text)} chars into {len(segments)} segments ({mode.value})"
        )
    return segments


def split_message(
    text: str,
    *,
    mode: SplitMode = SplitMode.FINAL,
    max_length: int = MAX_LENGTH,
    incomplete: bool | None = None,
) -> tuple[str, list[str]]:
    """Split *text* and return ``(first, rest)``.

    *incomplete* is shorthand for ``mode=SplitMode.STREAMING`` and wins over
    *mode* when given.
    """
    if incomplete is not None:
        mode = SplitMode.STREAMING if incomplete else SplitMode.FINAL
    first, *rest = split_segments(text, mode=mode, max_length=max_length)
    return first, rest
