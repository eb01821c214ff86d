"""CompeteHub Notifier — Live Smoke Run.

Runs the extraction stages against the live listing page without
touching the seen store or Telegram:
  1. Loads real config
  2. Fetches the listing page
  3. Extracts competitions and prints them
  4. Renders the Telegram messages that would be sent
  5. Reports per-field fill rates

Run: python scripts/smoke_run.py
"""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.config import load_config
from src.notifier.formatters import build_message_batches
from src.scraper.client import CompeteHubClient
from src.scraper.extractor import CompetitionExtractor
from src.utils.logger import get_logger

logger = get_logger(__name__)

_passed = 0
_failed = 0


def check(label: str, condition: bool) -> None:
    """Track check pass/fail."""
    global _passed, _failed
    if condition:
        _passed += 1
        logger.info("  ✅ %s", label)
    else:
        _failed += 1
        logger.error("  ❌ FAILED: %s", label)


async def run_smoke() -> None:
    """Fetch, extract and render once."""
    logger.info("╔══════════════════════════════════════════════════════╗")
    logger.info("║  CompeteHub Notifier — Live Smoke Run                ║")
    logger.info("╚══════════════════════════════════════════════════════╝")

    config = load_config()

    logger.info("═══ Step 1: Fetch ═══")
    async with CompeteHubClient(config.scraper) as client:
        html = await client.fetch_listing_html()
    check(f"Fetched {len(html)} chars", len(html) > 0)

    logger.info("═══ Step 2: Extract ═══")
    competitions = CompetitionExtractor(debug_dump=True).extract(html)
    check(f"Extracted {len(competitions)} competitions", len(competitions) > 0)

    for i, comp in enumerate(competitions[:5], 1):
        logger.info("  ── #%d %s", i, comp.title)
        logger.info("     id=%s source=%s prize=%s", comp.id, comp.source, comp.prize)
        logger.info("     deadline=%s participants=%d tags=%s", comp.time_left, comp.participants, ", ".join(comp.tags))

    logger.info("═══ Step 3: Render ═══")
    batches = build_message_batches(
        competitions,
        config.scraper.competition_page_base,
        config.telegram.max_message_length,
    )
    check(f"{len(batches)} message(s) rendered", bool(batches) or not competitions)
    check(
        "All messages within limit",
        all(len(b.text) <= config.telegram.max_message_length for b in batches),
    )
    check(
        "Every record in exactly one message",
        sum(b.size for b in batches) == len(competitions),
    )

    logger.info("═══ Step 4: Field fill rates ═══")
    if competitions:
        for name in ("description", "prize", "time_left", "source", "tags"):
            filled = sum(1 for c in competitions if getattr(c, name))
            logger.info("  %-12s %3d/%d", name, filled, len(competitions))

    logger.info("═══ Results: %d passed, %d failed ═══", _passed, _failed)


if __name__ == "__main__":
    asyncio.run(run_smoke())
    sys.exit(1 if _failed else 0)
