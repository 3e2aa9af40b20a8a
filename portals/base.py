"""Abstract base class for site-specific listing adapters."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional

from models.listing import Listing


class SearchQuery(NamedTuple):
    """One search to run: the provenance token plus the city it covers."""

    source: str
    city: Optional[str] = None


class SiteAdapter(ABC):
    """
    Abstract base class for real estate listing site adapters.

    Each site (Redfin, Zillow, etc.) implements this interface to handle
    site-specific logic: which queries to search, URL building, card parsing
    and detail-page description extraction.

    Site-agnostic logic (dedup, tagging, persistence) lives in shared modules.
    """

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize adapter with configuration.

        Args:
            config: Full configuration dictionary from config.json
        """
        self.config = config
        self.site_config = config.get(self.get_site_name(), {})
        self.max_pages = self.site_config.get("max_pages")

    @abstractmethod
    def get_site_name(self) -> str:
        """
        Return site identifier.

        Returns:
            Site name (e.g., "redfin")
        """
        pass

    @abstractmethod
    def search_queries(self) -> List[SearchQuery]:
        """
        Return the searches to run.

        Each query's source becomes the `sources` entry of every listing it
        finds, and its city (when set) fills in listings without one.

        Returns:
            City-path queries, or one query per city and search keyword
        """
        pass

    @abstractmethod
    def build_search_url(self, query: SearchQuery, page: int = 1) -> str:
        """
        Build search URL for one query and results page.

        Args:
            query: Query from search_queries()
            page: Page number (1-indexed)

        Returns:
            Full search URL
        """
        pass

    @abstractmethod
    def parse_search_results(self, html: str) -> List[Listing]:
        """
        Parse listing cards from a search results page.

        Args:
            html: Search results page HTML

        Returns:
            Partial listings (link set, other fields possibly None)
        """
        pass

    @abstractmethod
    def extract_description(self, html: str) -> Optional[str]:
        """
        Extract the listing remarks from a detail page.

        Args:
            html: Detail page HTML

        Returns:
            Whitespace-normalized description or None
        """
        pass

    def get_page_count(self, html: str) -> int:
        """
        Number of result pages for a source, read from its first page.

        Default implementation: 1 (no pagination).
        """
        return 1

    def get_crawler_config(self) -> Dict[str, Any]:
        """
        Get site-specific crawler configuration for detail pages.

        Returns:
            Dict with crawl4ai configuration parameters
        """
        return {
            "wait_for": "css:main",
            "delay_before_return_html": 2.0,
        }

    def get_search_crawler_config(self) -> Dict[str, Any]:
        """
        Get site-specific crawler configuration for search results pages.

        Returns:
            Dict with crawl4ai configuration parameters
        """
        return {
            "wait_for": "css:body",
            "delay_before_return_html": 3.0,
            "js_code": "window.scrollTo(0, document.body.scrollHeight);",
        }
