"""CompeteHub Notifier — Async HTTP Client.

Fetches the competitions listing page with httpx.AsyncClient:
  - Fixed desktop-browser User-Agent and an HTML Accept header
  - Caching disabled on the request
  - One attempt per run; the scheduler provides the next try
  - Request counting for session telemetry
"""

from __future__ import annotations

from typing import Optional

import httpx

from src.config import ScraperConfig
from src.utils.logger import get_logger

logger = get_logger(__name__)

_COMMON_HEADERS = {
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "zh-CN,zh;q=0.9,en;q=0.8",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class FetchError(Exception):
    """Raised when the listing page cannot be fetched. Fatal to the run."""

    def __init__(self, url: str, status_code: Optional[int] = None, reason: str = "") -> None:
        self.url = url
        self.status_code = status_code
        if status_code is not None:
            message = f"Failed to fetch competitions ({status_code})"
        else:
            message = f"Failed to fetch competitions: {reason or 'transport error'}"
        super().__init__(message)


class CompeteHubClient:
    """Async HTTP client for the competitions listing page.

    Attributes:
        config: Scraper configuration.
        total_requests: Running count of successful requests this session.
    """

    def __init__(
        self,
        config: ScraperConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            config: ScraperConfig instance loaded from settings.yaml.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.config = config
        self.total_requests: int = 0
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Lazily create the httpx.AsyncClient."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                headers={
                    **_COMMON_HEADERS,
                    "User-Agent": self.config.user_agent,
                },
                follow_redirects=True,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            )
        return self._client

    async def fetch_listing_html(self, url: Optional[str] = None) -> str:
        """GET the listing page and return its body as text.

        Args:
            url: Page URL; defaults to the configured target URL.

        Returns:
            The response body.

        Raises:
            FetchError: On a non-2xx status or a transport failure.
        """
        target = url or self.config.target_url
        client = await self._get_client()
        logger.info("Fetching listing page: %s", target)

        try:
            resp = await client.get(target)
        except httpx.HTTPError as e:
            logger.error("HTTP error fetching %s: %s", target, e)
            raise FetchError(target, reason=str(e) or type(e).__name__) from e

        if not resp.is_success:
            logger.error("HTTP %d for %s", resp.status_code, target)
            raise FetchError(target, status_code=resp.status_code)

        self.total_requests += 1
        html = resp.text
        logger.info("Fetched HTML with length: %d", len(html))
        return html

    async def close(self) -> None:
        """Close the underlying httpx client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.debug("HTTP client closed (total requests: %d)", self.total_requests)

    async def __aenter__(self) -> "CompeteHubClient":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
