"""CompeteHub Notifier — Tolerant JSON Decoder.

Parses one carved block, which still carries the payload's escaped
quotes (\\"key\\":\\"value\\"). Two distinct attempts are made so a
failure can be attributed to the layer that caused it:

  1. sanitize control characters, unescape quotes, parse
  2. reinterpret the sanitized text as raw bytes, decode as UTF-8
     (invalid sequences replaced), unescape quotes, parse
"""

from __future__ import annotations

import json
import re
from typing import Any

from src.utils.logger import get_logger

logger = get_logger(__name__)

_CONTROL_CHARS = re.compile(r"[\x00-\x1f]")

# Control characters with a standard JSON escape; the rest are dropped
_CONTROL_ESCAPES = {
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
    "\b": "\\b",
    "\f": "\\f",
}


class BlockParseError(ValueError):
    """Raised when a block fails both parse attempts."""

    def __init__(self, first: Exception, second: Exception) -> None:
        self.first = first
        self.second = second
        super().__init__(f"direct parse: {first}; utf-8 reinterpretation: {second}")


def sanitize_control_chars(text: str) -> str:
    """Escape or drop characters 0x00-0x1F, which JSON forbids raw."""
    return _CONTROL_CHARS.sub(lambda m: _CONTROL_ESCAPES.get(m.group(0), ""), text)


def unescape_quotes(text: str) -> str:
    """Turn the payload's \\" back into literal quotes."""
    return text.replace('\\"', '"')


def reinterpret_as_utf8(text: str) -> str:
    """Read each character's low byte as raw input and decode it as UTF-8.

    Repairs text whose UTF-8 bytes were widened one byte per character.
    """
    raw = bytes(ord(ch) & 0xFF for ch in text)
    return raw.decode("utf-8", errors="replace")


def parse_block(raw: str) -> Any:
    """Parse a carved block into a Python object.

    Args:
        raw: Balanced block text from the extractor.

    Returns:
        The decoded JSON value (normally a dict).

    Raises:
        BlockParseError: If both attempts fail.
    """
    sanitized = sanitize_control_chars(raw)

    try:
        return json.loads(unescape_quotes(sanitized))
    except json.JSONDecodeError as first:
        logger.debug("Direct parse failed (%s); retrying as UTF-8 bytes", first)
        try:
            return json.loads(unescape_quotes(reinterpret_as_utf8(sanitized)))
        except json.JSONDecodeError as second:
            raise BlockParseError(first, second) from second
