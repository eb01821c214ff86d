"""CompeteHub Notifier — Competition Extractor.

Turns the fetched listing document into Competition records:
locate + decode the payload chunk, carve one JSON block per card
marker, parse each block tolerantly, and normalize it.

Failures are per card: a block that does not balance, does not parse,
or lacks an id/title is logged and skipped, and scanning continues.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from src.database.models import Competition
from src.scraper.json_blocks import RECORD_MARKER, iter_marker_blocks
from src.scraper.normalizer import normalize_competition
from src.scraper.rsc_decoder import CARD_MARKER, locate_competition_chunk
from src.scraper.tolerant_json import BlockParseError, parse_block
from src.utils.logger import get_logger

logger = get_logger(__name__)

# Debug dump directory for unparseable blocks
DEBUG_DIR = Path(__file__).resolve().parent.parent.parent / "logs" / "debug"


class CompetitionExtractor:
    """Extracts Competition records from a listing page document.

    Attributes:
        debug_dump: Whether unparseable blocks are written to logs/debug/.
    """

    def __init__(self, debug_dump: bool = False, debug_dir: Optional[Path] = None) -> None:
        self.debug_dump = debug_dump
        self.debug_dir = debug_dir or DEBUG_DIR

    def extract(self, html: str) -> list[Competition]:
        """Extract every well-formed competition card from `html`.

        Returns:
            Competitions in page order; empty when no payload chunk
            carries cards.
        """
        chunk = locate_competition_chunk(html, CARD_MARKER)
        if chunk is None:
            logger.critical("No payload chunk found with %s marker", CARD_MARKER)
            return []

        return self.extract_from_chunk(chunk)

    def extract_from_chunk(self, chunk: str) -> list[Competition]:
        """Extract competitions from an already decoded chunk."""
        competitions: list[Competition] = []
        iterations = 0

        for block in iter_marker_blocks(chunk, RECORD_MARKER):
            iterations = block.iteration

            if block.raw is None:
                logger.error(
                    "Iteration %d: unbalanced object at marker index %d, object start %d",
                    block.iteration, block.marker_index, block.start,
                )
                continue

            try:
                payload = parse_block(block.raw)
            except BlockParseError as e:
                logger.error(
                    "Iteration %d: Failed to parse competition payload: %s",
                    block.iteration, e,
                )
                self._debug_dump_block(block.raw, block.iteration)
                continue

            competition = normalize_competition(payload)
            if competition is None:
                logger.warning(
                    "Iteration %d: Invalid competition data (missing id or title)",
                    block.iteration,
                )
                continue

            competitions.append(competition)

        logger.info(
            "Extracted %d competitions from %d iterations",
            len(competitions), iterations,
        )

        if not competitions:
            logger.critical("No competitions extracted despite finding payload chunk")

        return competitions

    def _debug_dump_block(self, raw: str, iteration: int) -> None:
        """Save an unparseable block to disk for manual inspection."""
        if not self.debug_dump:
            return
        try:
            self.debug_dir.mkdir(parents=True, exist_ok=True)
            path = self.debug_dir / f"block_{iteration}.txt"
            path.write_text(raw, encoding="utf-8")
            logger.debug("Saved debug dump to %s", path)
        except OSError as e:
            logger.warning("Failed to save debug dump: %s", e)


def extract_competitions(html: str) -> list[Competition]:
    """Convenience wrapper around CompetitionExtractor().extract()."""
    return CompetitionExtractor().extract(html)
