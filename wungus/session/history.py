"""Bounded per-conversation message history."""

from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from wungus.config import Settings


class HistoryStore:
    """
    Recent messages per key (user, thread or DM channel id).

    Each key owns a fixed-capacity buffer; once full, recording a message
    evicts the oldest one.
    """

    def __init__(self, capacity: int = 5) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._buffers: dict[str, deque[str]] = {}

    @classmethod
    def from_settings(cls, settings: Settings) -> HistoryStore:
        return cls(capacity=settings.history_size)

    def get_or_create(self, key: str) -> deque[str]:
        if key not in self._buffers:
            self._buffers[key] = deque(maxlen=self.capacity)
        return self._buffers[key]

    def record(self, key: str, message: str) -> deque[str]:
        buffer = self.get_or_create(key)
        buffer.append(message)
        return buffer

    def snapshot(self, key: str) -> list[str]:
        """Messages for *key*, oldest first. Empty for unknown keys."""
        buffer = self._buffers.get(key)
        return list(buffer) if buffer else []

    def to_chat_messages(self, key: str, role: str = "user") -> list[dict[str, Any]]:
        """History as chat-completion messages."""
        return [{"role": role, "content": message} for message in self.snapshot(key)]

    def clear(self, key: str) -> None:
        self._buffers.pop(key, None)

    def __contains__(self, key: object) -> bool:
        return key in self._buffers

    def __len__(self) -> int:
        return len(self._buffers)
