"""CompeteHub Notifier — Telegram Bot Client.

Async Telegram client built on python-telegram-bot. Sends one
MarkdownV2 message per call with link previews disabled. There is no
retry here: a failed message is reported to the caller, which logs it
and moves on.
"""

from __future__ import annotations

from typing import Any, Optional

from telegram import Bot, LinkPreviewOptions
from telegram.constants import ParseMode
from telegram.error import RetryAfter, TelegramError
from telegram.request import HTTPXRequest

from src.config import TelegramConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)


class NotificationError(Exception):
    """Raised when Telegram rejects or fails to deliver a message."""


class TelegramNotifier:
    """Async Telegram bot for sending competition notifications.

    Attributes:
        config: TelegramConfig with bot_token and chat_id.
    """

    def __init__(self, config: TelegramConfig, bot: Optional[Any] = None) -> None:
        """Initialize the notifier.

        Args:
            config: TelegramConfig from the app configuration.
            bot: Pre-built Bot-like object (tests inject a fake).
        """
        if bot is None and not config.bot_token:
            raise ValueError("TelegramNotifier requires a bot token")
        self.config = config
        # Built here, closed in close()
        self._owned_requests: tuple[HTTPXRequest, ...] = ()
        if bot is None:
            request, updates_request = HTTPXRequest(), HTTPXRequest()
            bot = Bot(token=config.bot_token, request=request, get_updates_request=updates_request)
            self._owned_requests = (request, updates_request)
        self._bot = bot

    async def initialize(self) -> bool:
        """Initialize the bot, which verifies the token with getMe.

        Returns:
            True if connected successfully, False otherwise.
        """
        try:
            await self._bot.initialize()
            logger.info("Telegram bot connected: @%s", self._bot.username)
            return True
        except TelegramError as e:
            logger.error("Telegram bot connection failed: %s", e)
            return False

    async def send_markdown(self, text: str) -> str:
        """Send one MarkdownV2 message to the configured chat.

        Args:
            text: Pre-escaped MarkdownV2 message body.

        Returns:
            The Telegram message id.

        Raises:
            NotificationError: If Telegram rejects the message or the
                request fails.
        """
        try:
            msg = await self._bot.send_message(
                chat_id=self.config.chat_id,
                text=text,
                parse_mode=ParseMode.MARKDOWN_V2,
                link_preview_options=LinkPreviewOptions(is_disabled=True),
            )
        except RetryAfter as e:
            raise NotificationError(
                f"Telegram rate limited (retry after {e.retry_after}s)"
            ) from e
        except TelegramError as e:
            raise NotificationError(f"Failed to send Telegram notification: {e}") from e

        return str(msg.message_id)

    async def close(self) -> None:
        """Release the bot's HTTP resources.

        Bot.shutdown() is a no-op for a bot that never finished
        initialize(), so the request objects built here are shut down
        directly as well.
        """
        shutdown = getattr(self._bot, "shutdown", None)
        if shutdown is not None:
            try:
                await shutdown()
            except TelegramError as e:
                logger.warning("Telegram shutdown failed: %s", e)

        for request in self._owned_requests:
            await request.shutdown()
