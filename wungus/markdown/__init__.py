"""Markdown reply splitting module."""

from wungus.markdown.chunk import (
    MAX_LENGTH,
    SplitMode,
    split_long_line,
    split_message,
    split_segments,
)
from wungus.markdown.stream import StreamingAssembler, assemble, assemble_async

__all__ = [
    "MAX_LENGTH",
    "SplitMode",
    "split_long_line",
    "split_message",
    "split_segments",
    "StreamingAssembler",
    "assemble",
    "assemble_async",
]
