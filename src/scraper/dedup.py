"""CompeteHub Notifier — Deduplication Gate.

Splits extracted competitions into new vs. already notified using the
injected KeyValueStore, and writes SeenMarkers for the new ones.

When no store is configured the gate fails open: everything counts as
new and nothing is written. Duplicate notifications are possible in
that mode; silently suppressing every notification is not.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from src.database.models import SEEN_TTL_SECONDS, Competition, SeenMarker
from src.database.store import KeyValueStore
from src.utils.logger import get_logger

logger = get_logger(__name__)


class SeenFilter:
    """Deduplication gate over an optional KeyValueStore.

    Attributes:
        store: The seen-marker store, or None when not configured.
        ttl_seconds: Lifetime of written markers.
    """

    def __init__(
        self,
        store: Optional[KeyValueStore],
        ttl_seconds: int = SEEN_TTL_SECONDS,
    ) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds

    async def filter_new(self, competitions: Sequence[Competition]) -> list[Competition]:
        """Return the competitions that have no live SeenMarker.

        All lookups run concurrently and are joined before the split; a
        failed lookup propagates and aborts the run.
        """
        if self.store is None:
            logger.warning("Seen store missing; treating all competitions as new")
            return list(competitions)

        if not competitions:
            return []

        existing = await asyncio.gather(
            *(self.store.get(comp.seen_key) for comp in competitions)
        )

        fresh = [comp for comp, value in zip(competitions, existing) if value is None]
        logger.debug(
            "Seen filter: %d new, %d already seen",
            len(fresh), len(competitions) - len(fresh),
        )
        return fresh

    async def mark_seen(self, competitions: Sequence[Competition]) -> int:
        """Write a SeenMarker for each competition, concurrently.

        Returns:
            Number of markers written (0 when no store is configured).
        """
        if self.store is None or not competitions:
            return 0

        markers = [SeenMarker(id=comp.id) for comp in competitions]
        await asyncio.gather(
            *(self.store.put(m.key, m.to_json(), self.ttl_seconds) for m in markers)
        )
        logger.info("Stored %d seen markers", len(markers))
        return len(markers)
