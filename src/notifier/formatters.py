"""CompeteHub Notifier — Telegram Message Formatters.

Renders competitions as Telegram MarkdownV2 text and packs the rendered
blocks into as few messages as the length limit allows.

Every message opens with a header naming the total number of new
competitions; when the list spans several messages the header also
gives the 1-based range the message covers, e.g. (4\\-6/9).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Sequence

from src.database.models import Competition
from src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Constants ─────────────────────────────────────────────
TELEGRAM_MAX_LENGTH = 4096
BLOCK_SEPARATOR = "\n\n"
DESCRIPTION_LIMIT = 160
DESCRIPTION_KEEP = 157
PLACEHOLDER = "\\-"
UNKNOWN = "未知"

# Characters MarkdownV2 reserves outside entities
_MARKDOWN_RESERVED = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")


def escape_markdown(text: str) -> str:
    """Backslash-escape every MarkdownV2 reserved character.

    Args:
        text: Raw text.

    Returns:
        Text safe to embed in a MarkdownV2 message.
    """
    if not text:
        return ""
    return _MARKDOWN_RESERVED.sub(r"\\\1", str(text))


def trim_description(description: str) -> str:
    """Cut descriptions longer than 160 characters to 157 plus '...'."""
    if len(description) <= DESCRIPTION_LIMIT:
        return description
    return f"{description[:DESCRIPTION_KEEP]}..."


def format_competition(comp: Competition, base_url: str) -> str:
    """Render one competition as a MarkdownV2 block.

    Layout: a linked title, then one labeled line each for source,
    prize, deadline, tags and description.
    """
    link = escape_markdown(f"{base_url}{comp.id}")
    title = escape_markdown(comp.title)
    source = escape_markdown(comp.source or UNKNOWN)
    prize = escape_markdown(comp.prize or UNKNOWN)
    time_left = escape_markdown(comp.time_left or UNKNOWN)
    description = (
        escape_markdown(trim_description(comp.description))
        if comp.description else PLACEHOLDER
    )
    tags = (
        " ".join(f"`{escape_markdown(tag)}`" for tag in comp.tags)
        if comp.tags else PLACEHOLDER
    )

    return "\n".join([
        f"• [{title}]({link})",
        f"  来源: {source}",
        f"  奖金: {prize}",
        f"  截止: {time_left}",
        f"  标签: {tags}",
        f"  简介: {description}",
    ])


def build_header(total: int, start: Optional[int] = None, end: Optional[int] = None) -> str:
    """Message header; with start/end it names the covered range."""
    if start is not None and end is not None:
        return f"发现 {total} 个新竞赛（{start}\\-{end}/{total}）：\n\n"
    return f"发现 {total} 个新竞赛：\n\n"


@dataclass(frozen=True)
class MessageBatch:
    """One outbound message and the records it covers.

    Attributes:
        text: Full message text, header included.
        start: 1-based position of the first record in the batch.
        end: 1-based position of the last record in the batch.
    """

    text: str
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start + 1


def pack_blocks(blocks: Sequence[str], max_length: int = TELEGRAM_MAX_LENGTH) -> list[MessageBatch]:
    """Pack rendered blocks into messages no longer than `max_length`.

    Blocks keep their order and each lands in exactly one message. A
    block is appended while header + existing blocks + separators + the
    block still fit; otherwise the current batch is closed and the
    block starts the next one. A single block longer than the limit is
    still sent on its own.

    Args:
        blocks: Rendered record blocks in list order.
        max_length: Character budget per message.

    Returns:
        Batches in order; the header total equals len(blocks).
    """
    total = len(blocks)
    batches: list[MessageBatch] = []
    current: list[str] = []
    current_body = 0  # sum of block lengths in `current`

    for i, block in enumerate(blocks):
        batch_start = i - len(current) + 1
        header = build_header(total, batch_start, i + 1)
        would_be = (
            len(header)
            + current_body
            + len(BLOCK_SEPARATOR) * len(current)
            + len(block)
        )

        if would_be > max_length and current:
            closing_header = (
                build_header(total)
                if len(current) == total
                else build_header(total, batch_start, i)
            )
            batches.append(MessageBatch(
                text=closing_header + BLOCK_SEPARATOR.join(current),
                start=batch_start,
                end=i,
            ))
            current = [block]
            current_body = len(block)
        else:
            current.append(block)
            current_body += len(block)

    if current:
        batch_start = total - len(current) + 1
        header = build_header(total) if not batches else build_header(total, batch_start, total)
        batches.append(MessageBatch(
            text=header + BLOCK_SEPARATOR.join(current),
            start=batch_start,
            end=total,
        ))

    for batch in batches:
        if len(batch.text) > max_length:
            logger.warning(
                "Message for records %d-%d is %d chars (limit %d)",
                batch.start, batch.end, len(batch.text), max_length,
            )

    return batches


def build_message_batches(
    competitions: Sequence[Competition],
    base_url: str,
    max_length: int = TELEGRAM_MAX_LENGTH,
) -> list[MessageBatch]:
    """Render competitions and pack them into message batches."""
    blocks = [format_competition(comp, base_url) for comp in competitions]
    return pack_blocks(blocks, max_length)


def build_messages(
    competitions: Sequence[Competition],
    base_url: str,
    max_length: int = TELEGRAM_MAX_LENGTH,
) -> list[str]:
    """Render competitions and return the message texts in send order."""
    return [batch.text for batch in build_message_batches(competitions, base_url, max_length)]
