"""CompeteHub Notifier — Notification Dispatcher.

Formats new competitions into message batches and sends them through
the TelegramNotifier strictly one at a time, pausing briefly between
sends. A failed message is logged and the next one is still attempted;
the returned count covers only records in delivered messages.

Without Telegram credentials nothing is sent and the count is 0, so a
run then reports notified=0 even though it found new competitions.
"""

from __future__ import annotations

import asyncio
from typing import Optional, Sequence

from src.config import ScraperConfig, TelegramConfig
from src.database.models import Competition
from src.notifier.formatters import build_message_batches
from src.notifier.telegram_bot import NotificationError, TelegramNotifier
from src.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationDispatcher:
    """Sends competition notifications through Telegram.

    Attributes:
        telegram_config: Limits, pacing and credentials.
        base_url: Prefix of a competition's permalink.
        telegram: The transport, or None when credentials are missing.
    """

    def __init__(
        self,
        telegram_config: TelegramConfig,
        scraper_config: ScraperConfig,
        telegram: Optional[TelegramNotifier] = None,
    ) -> None:
        self.telegram_config = telegram_config
        self.base_url = scraper_config.competition_page_base
        if telegram is None and telegram_config.is_configured:
            telegram = TelegramNotifier(telegram_config)
        self.telegram = telegram

    async def notify(self, competitions: Sequence[Competition]) -> int:
        """Send notifications for `competitions`.

        Returns:
            Number of competitions contained in delivered messages; 0
            when notification is skipped.
        """
        if not competitions:
            return 0

        if self.telegram is None:
            logger.info("Telegram credentials missing; skipping notification")
            return 0

        batches = build_message_batches(
            competitions, self.base_url, self.telegram_config.max_message_length,
        )
        logger.info(
            "Splitting %d competitions into %d message(s)",
            len(competitions), len(batches),
        )

        notified = 0
        for i, batch in enumerate(batches):
            try:
                msg_id = await self.telegram.send_markdown(batch.text)
            except NotificationError as e:
                logger.error(
                    "Telegram notification error for message %d/%d (records %d-%d): %s",
                    i + 1, len(batches), batch.start, batch.end, e,
                )
            else:
                notified += batch.size
                logger.info(
                    "Sent message %d/%d (%d chars, msg=%s)",
                    i + 1, len(batches), len(batch.text), msg_id,
                )

            if i < len(batches) - 1:
                await asyncio.sleep(self.telegram_config.send_delay_seconds)

        return notified

    async def close(self) -> None:
        if self.telegram is not None:
            await self.telegram.close()
