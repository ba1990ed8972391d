"""Segment delivery module."""

from wungus.delivery.discord import DiscordSink
from wungus.delivery.pipeline import deliver_reply, deliver_stream
from wungus.delivery.sink import DeliveryError, ListSink, SegmentSink

__all__ = [
    "DeliveryError",
    "DiscordSink",
    "ListSink",
    "SegmentSink",
    "deliver_reply",
    "deliver_stream",
]
