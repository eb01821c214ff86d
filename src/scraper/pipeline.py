"""CompeteHub Notifier — Workflow Pipeline.

One run: fetch the listing page, extract competitions, keep the ones
not seen before, store their seen markers, then notify.

Markers are written before notifying, so a crash mid-notification
loses those notifications instead of repeating them on the next run.
Notification failures never fail the run; they only lower `notified`.
"""

from __future__ import annotations

import time
from typing import Optional

from src.config import AppConfig
from src.database.models import WorkflowResult
from src.database.store import KeyValueStore
from src.notifier.dispatcher import NotificationDispatcher
from src.scraper.client import CompeteHubClient
from src.scraper.dedup import SeenFilter
from src.scraper.extractor import CompetitionExtractor
from src.utils.logger import get_logger

logger = get_logger(__name__)


class CompetitionWorkflow:
    """Runs the fetch → extract → dedupe → store → notify sequence.

    Attributes:
        config: Full application configuration.
        client: Listing page fetcher.
        seen_filter: Deduplication gate (fails open without a store).
        dispatcher: Telegram notification dispatcher.
    """

    def __init__(
        self,
        config: AppConfig,
        store: Optional[KeyValueStore],
        client: Optional[CompeteHubClient] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        extractor: Optional[CompetitionExtractor] = None,
    ) -> None:
        self.config = config
        self.client = client or CompeteHubClient(config.scraper)
        self.seen_filter = SeenFilter(
            store, ttl_seconds=config.store.seen_ttl_days * 24 * 60 * 60,
        )
        self.dispatcher = dispatcher or NotificationDispatcher(
            config.telegram, config.scraper,
        )
        self.extractor = extractor or CompetitionExtractor(
            debug_dump=config.scraper.debug_dump,
        )

    async def run(self) -> WorkflowResult:
        """Execute one workflow run.

        Returns:
            The run summary.

        Raises:
            FetchError: If the listing page cannot be fetched.
        """
        start_time = time.monotonic()
        logger.info("═══ Workflow started ═══")

        html = await self.client.fetch_listing_html()

        competitions = self.extractor.extract(html)
        logger.info("Total competitions extracted: %d", len(competitions))

        new_items = await self.seen_filter.filter_new(competitions)
        logger.info("New competitions found: %d", len(new_items))

        notified = 0
        if new_items:
            logger.info("Storing %d new competitions to seen store", len(new_items))
            await self.seen_filter.mark_seen(new_items)

            notified = await self.dispatcher.notify(new_items)
            if notified < len(new_items):
                logger.warning(
                    "Notified %d of %d new competitions", notified, len(new_items),
                )
            else:
                logger.info("Successfully notified %d competitions via Telegram", notified)
        else:
            logger.info("No new competitions to notify")

        result = WorkflowResult(
            fetched=len(competitions),
            new_items=len(new_items),
            notified=notified,
        )

        elapsed = time.monotonic() - start_time
        logger.info("═══ Workflow completed ═══")
        logger.info(
            "  Fetched: %d | New: %d | Notified: %d | Time: %.1fs",
            result.fetched, result.new_items, result.notified, elapsed,
        )
        return result

    async def close(self) -> None:
        await self.client.close()
        await self.dispatcher.close()
