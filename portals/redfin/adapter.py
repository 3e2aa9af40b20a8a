"""Redfin.com site adapter."""

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from bs4 import BeautifulSoup

from models.constants import SEARCH_TERMS
from models.listing import Listing
from portals.base import SearchQuery, SiteAdapter
from portals.redfin.constants import (
    BASE_URL,
    CARD_ADDRESS_SELECTOR,
    CARD_BATHS_SELECTOR,
    CARD_BEDS_SELECTOR,
    CARD_CONTAINER_SELECTOR,
    CARD_IMAGE_SELECTOR,
    CARD_LINK_SELECTOR,
    CARD_PRICE_SELECTOR,
    CARD_REMARKS_SELECTOR,
    CARD_SELECTOR,
    CARD_SQFT_SELECTOR,
    DEFAULT_CITY_PATHS,
    KEYWORD_FILTER_PATH,
    PAGE_NUMBER_SELECTOR,
    REMARKS_SELECTORS,
    SOURCE_MODE_CITY,
    SOURCE_MODE_KEYWORDS,
    SOURCE_MODES,
)
from utils.extractors import clean_decimal, clean_num, collapse_whitespace, format_space, join_url

logger = logging.getLogger(__name__)


def _select_text(node, selector: str) -> Optional[str]:
    element = node.select_one(selector)
    if element is None:
        return None
    return element.get_text(strip=True) or None


class RedfinAdapter(SiteAdapter):
    """Adapter for Redfin city search pages."""

    def __init__(self, config: Dict[str, Any]):
        """
        Initialize Redfin adapter.

        City paths come from config["redfin"]["city_paths"], falling back to
        the built-in metro Atlanta list. With source_mode "keywords" every city
        is searched once per term in config["redfin"]["search_terms"] (default
        SEARCH_TERMS) and listings are sourced by the term that found them.

        Raises:
            ValueError: If source_mode is not a known mode
        """
        super().__init__(config)
        self.city_paths = self.site_config.get("city_paths") or list(DEFAULT_CITY_PATHS)
        self.source_mode = str(self.site_config.get("source_mode", SOURCE_MODE_CITY)).lower()
        if self.source_mode not in SOURCE_MODES:
            raise ValueError(
                f"Unsupported redfin source_mode: {self.source_mode}. "
                f"Supported modes: {', '.join(SOURCE_MODES)}"
            )
        self.search_terms = self.site_config.get("search_terms") or list(SEARCH_TERMS)

    def get_site_name(self) -> str:
        """Return site identifier."""
        return "redfin"

    def search_queries(self) -> List[SearchQuery]:
        if self.source_mode == SOURCE_MODE_KEYWORDS:
            return [
                SearchQuery(source=term, city=city_path)
                for city_path in self.city_paths
                for term in self.search_terms
            ]
        return [SearchQuery(source=city_path, city=city_path) for city_path in self.city_paths]

    def build_search_url(self, query: SearchQuery, page: int = 1) -> str:
        """
        Build redfin.com city URL.

        A keyword query adds the remarks filter; page N > 1 appends /page-N.
        """
        url = join_url(BASE_URL, query.city or query.source)
        if self.source_mode == SOURCE_MODE_KEYWORDS:
            url = f"{url}{KEYWORD_FILTER_PATH}{quote(query.source.lower())}"
        if page > 1:
            return f"{url}/page-{page}"
        return url

    def parse_search_results(self, html: str) -> List[Listing]:
        """Parse every home card found in the result containers."""
        soup = BeautifulSoup(html, "html.parser")
        listings: List[Listing] = []

        for container in soup.select(CARD_CONTAINER_SELECTOR):
            for card in container.select(CARD_SELECTOR):
                listings.append(self._parse_card(card))

        logger.debug(f"Parsed {len(listings)} Redfin cards")
        return listings

    def _parse_card(self, card) -> Listing:
        link_el = card.select_one(CARD_LINK_SELECTOR)
        href = link_el.get("href", "") if link_el is not None else ""

        image_el = card.select_one(CARD_IMAGE_SELECTOR)
        image_url = image_el.get("src") if image_el is not None else None

        sqft = clean_num(_select_text(card, CARD_SQFT_SELECTOR))

        # Card remarks if present, else the card's aria-label
        remarks = card.select_one(CARD_REMARKS_SELECTOR)
        if remarks is not None:
            paragraphs = [p.get_text(strip=True) for p in remarks.find_all("p")]
            paragraphs = [p for p in paragraphs if p]
            text = " ".join(paragraphs) if paragraphs else remarks.get_text()
            description = collapse_whitespace(text)
        else:
            description = card.get("aria-label") or None

        return Listing(
            link=join_url(BASE_URL, href),
            image_url=image_url or None,
            address=collapse_whitespace(_select_text(card, CARD_ADDRESS_SELECTOR)),
            price=clean_num(_select_text(card, CARD_PRICE_SELECTOR)),
            beds=clean_decimal(_select_text(card, CARD_BEDS_SELECTOR)),
            baths=clean_decimal(_select_text(card, CARD_BATHS_SELECTOR)),
            space=format_space(sqft),
            description=description,
        )

    def get_page_count(self, html: str) -> int:
        """Read the last page label from the pager, 1 if there is none."""
        soup = BeautifulSoup(html, "html.parser")
        labels = soup.select(PAGE_NUMBER_SELECTOR)
        if not labels:
            return 1
        return max(1, clean_num(labels[-1].get_text(strip=True)) or 1)

    def extract_description(self, html: str) -> Optional[str]:
        """Extract marketing remarks from a home detail page."""
        soup = BeautifulSoup(html, "html.parser")

        for selector in REMARKS_SELECTORS:
            element = soup.select_one(selector)
            if element is not None:
                text = collapse_whitespace(element.get_text(" "))
                if text:
                    return text

        paragraphs = [p.get_text(strip=True) for p in soup.select(".remarksContainer p")]
        paragraphs = [p for p in paragraphs if p]
        if paragraphs:
            return " ".join(paragraphs)
        return None

    def get_crawler_config(self) -> Dict[str, Any]:
        """Detail pages: wait for the remarks block."""
        return {
            "wait_for": "css:.remarksContainer, [data-rf-test-id='listingRemarks'], .marketingRemarks",
            "delay_before_return_html": 2.0,
        }

    def get_search_crawler_config(self) -> Dict[str, Any]:
        """Search pages: wait for the card grid and scroll to load lazy cards."""
        return {
            "wait_for": "css:.HomeViews .HomeCardsContainer, .HomeCardsContainer",
            "delay_before_return_html": 3.0,
            "js_code": "window.scrollTo(0, document.body.scrollHeight);",
        }
