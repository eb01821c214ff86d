"""CompeteHub Notifier — Record Normalizer.

Maps a decoded card object ({"competition": {...}}) onto the
Competition model. Missing optional fields get defaults and wrong types
are coerced; a candidate without an id or title is dropped.
"""

from __future__ import annotations

import math
import re
from typing import Any, Optional

from src.database.models import Competition
from src.utils.logger import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def normalize_spaces(text: str) -> str:
    """Collapse whitespace runs into single spaces and trim."""
    return _WHITESPACE.sub(" ", text).strip()


def _to_str(value: Any) -> str:
    """Coerce a JSON scalar to display text; None becomes ""."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _to_int(value: Any, default: int = 0) -> int:
    """Coerce a value to int, returning default on failure.

    Handles: int, float, str("42"), str("42.5"), None.
    """
    if value is None:
        return default
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip()) if value.strip() else float(default)
        except ValueError:
            return default
    else:
        return default
    if math.isnan(number) or math.isinf(number):
        return default
    return int(number)


def _to_tags(value: Any) -> tuple[str, ...]:
    """Tags must be list-shaped; anything else yields no tags."""
    if not isinstance(value, list):
        return ()
    return tuple(_to_str(tag) for tag in value)


def normalize_competition(payload: Any) -> Optional[Competition]:
    """Build a Competition from a decoded card object.

    Args:
        payload: Parsed block, expected to hold a "competition" object.

    Returns:
        A Competition, or None if the payload has no usable id/title.
    """
    if not isinstance(payload, dict):
        return None

    comp = payload.get("competition")
    if not isinstance(comp, dict):
        return None

    comp_id = comp.get("id")
    title = comp.get("title")
    if not comp_id or not title:
        return None

    return Competition(
        id=_to_str(comp_id),
        title=_to_str(title),
        description=normalize_spaces(_to_str(comp.get("description"))),
        prize=_to_str(comp.get("prize")),
        time_left=_to_str(comp.get("timeLeft")),
        source=_to_str(comp.get("source")),
        participants=_to_int(comp.get("participants")),
        tags=_to_tags(comp.get("tags")),
    )
