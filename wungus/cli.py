"""Command-line entry point: preview how a reply would be split."""

from __future__ import annotations

import argparse
import json
import sys

from loguru import logger

from wungus.config import Settings
from wungus.markdown.chunk import MIN_LENGTH, split_segments
from wungus.markdown.stream import assemble


def _fragments(text: str, size: int):
    for i in range(0, len(text), size):
        yield text[i:i + size]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="wungus-split",
        description="Split a markdown reply into chat-message sized segments",
    )
    parser.add_argument("file", help="File to split ('-' reads stdin)")
    parser.add_argument("--max-length", type=int, help="Segment length ceiling (default: WUNGUS_MAX_LENGTH or 2000)")
    parser.add_argument("--stream", type=int, metavar="N", help="Feed the text through the streaming assembler in N-character fragments")
    parser.add_argument("--json", action="store_true", help="Print segments as a JSON array")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    settings = Settings()
    max_length = args.max_length if args.max_length is not None else settings.max_length
    if max_length < MIN_LENGTH:
        parser.error(f"--max-length must be at least {MIN_LENGTH}")

    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if args.debug or settings.debug else "WARNING")

    if args.file == "-":
        text = sys.stdin.read()
    else:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()

    if args.stream and args.stream > 0:
        segments = list(assemble(_fragments(text, args.stream), max_length))
    else:
        segments = split_segments(text, max_length=max_length)

    if args.json:
        print(json.dumps(segments, ensure_ascii=False, indent=2))
        return 0

    for i, segment in enumerate(segments, 1):
        print(f"----- segment {i}/{len(segments)} ({len(segment)} chars) -----")
        print(segment)
    return 0


if __name__ == "__main__":
    sys.exit(main())
