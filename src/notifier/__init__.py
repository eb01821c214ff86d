"""CompeteHub Notifier — Notifier Package.

Telegram notification system with MarkdownV2 messages.
Components:
  - formatters: escaping, record rendering and message batching
  - telegram_bot: Async Telegram bot client
  - dispatcher: Sequential, paced sending of message batches
"""

from src.notifier.formatters import (
    build_messages,
    escape_markdown,
    format_competition,
    pack_blocks,
)
from src.notifier.telegram_bot import NotificationError, TelegramNotifier
from src.notifier.dispatcher import NotificationDispatcher

__all__ = [
    "build_messages",
    "escape_markdown",
    "format_competition",
    "pack_blocks",
    "NotificationError",
    "TelegramNotifier",
    "NotificationDispatcher",
]
