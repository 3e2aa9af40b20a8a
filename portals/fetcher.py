"""Page fetchers returning raw HTML for search and detail pages."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

from crawl4ai import AsyncWebCrawler

logger = logging.getLogger(__name__)


class PageFetcher(ABC):
    """Fetch a URL and return its rendered HTML, or None on any failure."""

    @abstractmethod
    async def fetch(self, url: str, **crawler_config: Any) -> Optional[str]:
        pass


class CrawlerPageFetcher(PageFetcher):
    """PageFetcher backed by a crawl4ai AsyncWebCrawler."""

    DEFAULT_TIMEOUT = 60.0

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, headless: bool = True):
        """
        Args:
            timeout: Seconds allowed per page, navigation and wait included
            headless: Run the browser headless
        """
        self.timeout = timeout
        self.headless = headless
        self._crawler: Optional[AsyncWebCrawler] = None

    async def __aenter__(self) -> "CrawlerPageFetcher":
        self._crawler = AsyncWebCrawler(headless=self.headless, verbose=False)
        await self._crawler.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._crawler is not None:
            await self._crawler.__aexit__(exc_type, exc, tb)
            self._crawler = None

    async def fetch(self, url: str, **crawler_config: Any) -> Optional[str]:
        """
        Fetch a page through the crawler.

        Args:
            url: Page URL
            **crawler_config: Passed to AsyncWebCrawler.arun (wait_for, js_code, ...)

        Returns:
            Page HTML, or None on timeout, crawler error or unsuccessful result
        """
        if not url:
            return None
        if self._crawler is None:
            raise RuntimeError("CrawlerPageFetcher must be used as an async context manager")

        try:
            result = await asyncio.wait_for(
                self._crawler.arun(url=url, **crawler_config),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out after {self.timeout}s fetching {url}")
            return None
        except Exception as e:
            logger.warning(f"Fetch failed for {url}: {e}")
            return None

        if not result.success:
            logger.warning(f"Failed to fetch {url}: {result.error_message}")
            return None

        return result.html
