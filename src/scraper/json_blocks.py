"""CompeteHub Notifier — Balanced JSON Block Extractor.

Carves JSON objects out of a chunk that is not itself JSON. Each record
starts after a marker; the object runs from the first `{` after the
marker to the `}` that brings the brace depth back to zero. Braces
inside string literals do not count.

At this layer the chunk still carries escaped quotes (\\"), so a quote
preceded by a backslash does not toggle string state.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Optional

from src.utils.logger import get_logger

logger = get_logger(__name__)

# Record marker as it appears in the decoded chunk (quote still escaped)
RECORD_MARKER = '\\"card-view-'


@dataclass(frozen=True)
class MarkerBlock:
    """Outcome of one marker occurrence.

    Attributes:
        iteration: 1-based occurrence number, for log correlation.
        marker_index: Offset of the marker in the chunk.
        start: Offset of the object's opening brace.
        raw: The balanced object text, or None if it never closed.
    """

    iteration: int
    marker_index: int
    start: int
    raw: Optional[str]


def extract_json_block(source: str, start: int) -> Optional[str]:
    """Return the balanced object that opens at `source[start]`.

    Single left-to-right pass with two states, in-string and
    not-in-string, plus a depth counter.

    Args:
        source: Text to scan.
        start: Offset of an opening brace.

    Returns:
        source[start:end + 1] for the closing brace, or None when the
        depth never returns to zero.
    """
    depth = 0
    in_string = False

    for i in range(start, len(source)):
        char = source[i]

        if char == '"' and (i == 0 or source[i - 1] != "\\"):
            in_string = not in_string
            continue

        if in_string:
            continue

        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return source[start:i + 1]

    return None


def iter_marker_blocks(chunk: str, marker: str = RECORD_MARKER) -> Iterator[MarkerBlock]:
    """Yield one MarkerBlock per marker occurrence, in order.

    A block that never balances is yielded with raw=None and scanning
    resumes just past its opening brace. Scanning stops when a marker
    has no `{` after it.
    """
    cursor = 0
    iteration = 0

    while True:
        marker_index = chunk.find(marker, cursor)
        if marker_index == -1:
            return
        iteration += 1

        start = chunk.find("{", marker_index)
        if start == -1:
            logger.error(
                "Iteration %d: No opening brace found after marker at index %d",
                iteration, marker_index,
            )
            return

        raw = extract_json_block(chunk, start)
        yield MarkerBlock(iteration=iteration, marker_index=marker_index, start=start, raw=raw)

        if raw is None:
            cursor = start + 1
        else:
            cursor = start + len(raw)

