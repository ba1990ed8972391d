"""Code-fence tracking for line-oriented splitting."""

from __future__ import annotations

from dataclasses import dataclass

FENCE = "```"


def count_fences(text: str) -> int:
    """Count ``` markers in *text* (non-overlapping)."""
    return text.count(FENCE)


def toggles_fence(line: str) -> bool:
    """Return True if *line* opens or closes a fenced block.

    Only lines that start with the marker (after leading whitespace) count,
    and a line carrying an even number of markers (```x``` style) both opens
    and closes, so it leaves the state unchanged.
    """
    stripped = line.lstrip()
    return stripped.startswith(FENCE) and count_fences(stripped) % 2 == 1


def find_fence_opener(lines: list[str], index: int) -> str:
    """Walk back from *index* to the line that opened the fence active there.

    Returns the opening line without leading whitespace (marker plus any
    language tag), or a bare marker when no opener is found.
    """
    for i in range(index - 1, -1, -1):
        if toggles_fence(lines[i]):
            return lines[i].lstrip()
    return FENCE


@dataclass
class FenceState:
    """Open/closed parity of the fenced block at the current line."""

    open: bool = False

    def feed(self, line: str) -> bool:
        """Advance the state past *line*. Returns True if the line toggled it."""
        if not toggles_fence(line):
            return False
        self.open = not self.open
        return True
