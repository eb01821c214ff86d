"""CompeteHub Notifier — Embedded Payload Locator & Decoder.

The listing page is server-rendered; its data ships inside inline
scripts of the form

    self.__next_f.push([1,"<escaped payload>"])

Each payload is an escaped string literal. This module walks every such
fragment in document order, decodes it, and returns the first one that
carries competition cards.
"""

from __future__ import annotations

import json
import re
from typing import Iterator, Optional

from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Patterns ──────────────────────────────────────────────
RSC_CHUNK_PATTERN = re.compile(r'self\.__next_f\.push\(\[1,"(.*?)"\]\)', re.DOTALL)
UNICODE_ESCAPE_PATTERN = re.compile(r"\\u([0-9a-fA-F]{4})")

# Substring that identifies the chunk holding the listing data
CARD_MARKER = "card-view-"


class ChunkDecodeError(ValueError):
    """Raised when one payload fragment cannot be decoded."""


def iter_payload_fragments(html: str) -> Iterator[str]:
    """Yield the raw escaped payload of every push() call, in order."""
    for match in RSC_CHUNK_PATTERN.finditer(html):
        yield match.group(1)


def unescape_unicode(text: str) -> str:
    """Expand \\uXXXX escapes into the characters they name.

    Escaped surrogate pairs are joined into a single code point; a lone
    surrogate becomes U+FFFD.
    """
    expanded = UNICODE_ESCAPE_PATTERN.sub(lambda m: chr(int(m.group(1), 16)), text)
    if any("\ud800" <= ch <= "\udfff" for ch in expanded):
        expanded = expanded.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace")
    return expanded


def decode_escaped_string(raw: str) -> str:
    """Decode one payload fragment into plain text.

    The fragment is re-escaped (backslashes doubled, quotes escaped) so it
    reads as a single JSON string literal, parsed to invert that literal,
    and finally has its \\uXXXX escapes expanded.

    Raises:
        ChunkDecodeError: If the literal does not parse (for example it
            holds raw control characters).
    """
    escaped = raw.replace("\\", "\\\\").replace('"', '\\"')
    try:
        first_pass = json.loads(f'"{escaped}"')
    except json.JSONDecodeError as e:
        raise ChunkDecodeError(f"Failed to decode escaped string: {e}") from e
    return unescape_unicode(first_pass)


def locate_competition_chunk(html: str, marker: str = CARD_MARKER) -> Optional[str]:
    """Find and decode the payload fragment containing `marker`.

    Every fragment is tried in document order; undecodable fragments are
    logged and skipped.

    Args:
        html: Full listing page document.
        marker: Substring the decoded chunk must contain.

    Returns:
        The decoded chunk, or None when no fragment qualifies.
    """
    checked = 0
    for index, raw in enumerate(iter_payload_fragments(html)):
        checked += 1
        try:
            decoded = decode_escaped_string(raw)
        except ChunkDecodeError as e:
            logger.warning("Skipping payload fragment #%d: %s", index, e)
            continue

        if decoded and marker in decoded:
            logger.info("Found payload chunk #%d with length: %d", index, len(decoded))
            return decoded

    logger.debug("No qualifying chunk among %d payload fragments", checked)
    return None
