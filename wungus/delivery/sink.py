"""Delivery sink interface."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


class DeliveryError(Exception):
    """A segment could not be delivered to the chat platform."""


@runtime_checkable
class SegmentSink(Protocol):
    """Receives finished segments, in order, one message each."""

    async def send(self, segment: str) -> None: ...


@runtime_checkable
class TypingSink(SegmentSink, Protocol):
    """A sink that can show a typing indicator while a reply is produced."""

    async def start_typing(self) -> None: ...

    async def stop_typing(self) -> None: ...


@dataclass
class ListSink:
    """Collects segments in memory."""

    segments: list[str] = field(default_factory=list)

    async def send(self, segment: str) -> None:
        self.segments.append(segment)
