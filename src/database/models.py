"""CompeteHub Notifier — Data Models.

Dataclasses for the entities that flow through a run: the normalized
Competition record, the persisted SeenMarker, and the per-run
WorkflowResult summary.

All are immutable once built; each run owns its own instances.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

# ── Constants ─────────────────────────────────────────────
SEEN_KEY_PREFIX = "seen:"
SEEN_TTL_DAYS = 90
SEEN_TTL_SECONDS = SEEN_TTL_DAYS * 24 * 60 * 60


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


# ═══════════════════════════════════════════════════════════
# Scraper Models
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class Competition:
    """A competition card extracted from the listing page.

    Only constructed when both `id` and `title` are present upstream;
    every other field carries a default.

    Attributes:
        id: Stable external identifier, used for links and dedup keys.
        title: Display title, rendered as the link text.
        description: Whitespace-normalized free text.
        prize: Prize text as shown on the site.
        time_left: Deadline / remaining-time text.
        source: Hosting platform of the competition.
        participants: Participant count, 0 when unknown.
        tags: Tag labels in site order.
    """

    id: str
    title: str
    description: str = ""
    prize: str = ""
    time_left: str = ""
    source: str = ""
    participants: int = 0
    tags: tuple[str, ...] = field(default_factory=tuple)

    @property
    def seen_key(self) -> str:
        """Key of this record's SeenMarker in the store."""
        return f"{SEEN_KEY_PREFIX}{self.id}"

    def to_dict(self) -> dict[str, Any]:
        """Serialize using the upstream (camelCase) field names.

        The result is accepted back by the normalizer unchanged.
        """
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "prize": self.prize,
            "timeLeft": self.time_left,
            "source": self.source,
            "participants": self.participants,
            "tags": list(self.tags),
        }


# ═══════════════════════════════════════════════════════════
# Store Models
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class SeenMarker:
    """Persisted flag recording that a competition was already notified.

    Attributes:
        id: The competition id.
        stored_at: ISO-8601 UTC timestamp of when the marker was written.
    """

    id: str
    stored_at: str = field(default_factory=utc_now_iso)

    @property
    def key(self) -> str:
        return f"{SEEN_KEY_PREFIX}{self.id}"

    def to_json(self) -> str:
        """Value document stored under `key`: {"id", "storedAt"}."""
        return json.dumps({"id": self.id, "storedAt": self.stored_at}, ensure_ascii=False)


# ═══════════════════════════════════════════════════════════
# Run Summary
# ═══════════════════════════════════════════════════════════


@dataclass(frozen=True)
class WorkflowResult:
    """Summary of one workflow run. Returned and logged, never stored.

    Attributes:
        fetched: Competitions extracted from the page.
        new_items: Competitions without a SeenMarker.
        notified: Competitions contained in delivered messages.
        timestamp: Completion time (ISO-8601 UTC).
    """

    fetched: int
    new_items: int
    notified: int
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> dict[str, Any]:
        return {
            "fetched": self.fetched,
            "newItems": self.new_items,
            "notified": self.notified,
            "timestamp": self.timestamp,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)
