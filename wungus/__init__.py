"""wungus - fence-aware splitting and delivery of long chat replies."""

__version__ = "0.1.0"
