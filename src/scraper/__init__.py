"""CompeteHub Notifier — Scraper Package.

Extraction and workflow pipeline for the competitions listing page:
  - CompeteHubClient: Async HTTP fetcher
  - rsc_decoder / json_blocks / tolerant_json / normalizer: extraction stages
  - CompetitionExtractor: Document → Competition records
  - SeenFilter: Deduplication gate
  - CompetitionWorkflow: One complete run
"""

from src.scraper.client import CompeteHubClient, FetchError
from src.scraper.dedup import SeenFilter
from src.scraper.extractor import CompetitionExtractor, extract_competitions
from src.scraper.pipeline import CompetitionWorkflow

__all__ = [
    "CompeteHubClient",
    "FetchError",
    "SeenFilter",
    "CompetitionExtractor",
    "extract_competitions",
    "CompetitionWorkflow",
]
