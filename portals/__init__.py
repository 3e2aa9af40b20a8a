"""Site adapter factory and exports."""

import logging
from typing import Any, Dict

from portals.base import SearchQuery, SiteAdapter
from portals.fetcher import CrawlerPageFetcher, PageFetcher

logger = logging.getLogger(__name__)


def get_adapter(config: Dict[str, Any]) -> SiteAdapter:
    """
    Factory function to get appropriate site adapter.

    Args:
        config: Configuration dictionary from config.json

    Returns:
        Site adapter instance

    Raises:
        ValueError: If site is not supported

    Example:
        >>> adapter = get_adapter({"site": "redfin"})
        >>> adapter.get_site_name()
        'redfin'
    """
    site = config.get("site", "redfin").lower()

    if site == "redfin":
        from portals.redfin.adapter import RedfinAdapter

        logger.info("Initializing Redfin adapter")
        return RedfinAdapter(config)

    raise ValueError(f"Unsupported site: {site}. Supported sites: 'redfin'")


__all__ = ["get_adapter", "SearchQuery", "SiteAdapter", "PageFetcher", "CrawlerPageFetcher"]
