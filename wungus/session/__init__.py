"""Conversation history module."""

from wungus.session.history import HistoryStore

__all__ = ["HistoryStore"]
