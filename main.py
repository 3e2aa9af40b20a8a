"""Real-estate listing crawler with damage and sale-type tagging."""

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from llm.hybrid import HybridClassifier
from models.constants import DEFAULT_DETAIL_CONCURRENCY, DEFAULT_TAG_CONCURRENCY
from models.listing import Listing
from portals import CrawlerPageFetcher, PageFetcher, SearchQuery, SiteAdapter, get_adapter
from storage import ListingStore, create_store
from utils.concurrency import collect_concurrent, map_concurrent
from utils.dedup import dedupe_by_address, dedupe_by_link
from utils.keyword_tagger import map_sources_to_tags, merge_unique

logger = logging.getLogger(__name__)

MODES = ("crawl", "retag", "backfill")


class ListingTagPipeline:
    """Crawl, dedupe, describe, tag and persist listings from one site."""

    def __init__(
        self,
        config: Dict[str, Any],
        adapter: SiteAdapter,
        store: ListingStore,
        classifier: HybridClassifier,
    ):
        """
        Initialize the pipeline with configuration.

        Args:
            config: Configuration dictionary from config.json
            adapter: Site adapter used for URLs and parsing
            store: Listing persistence backend
            classifier: Hybrid tagger
        """
        self.config = config
        self.adapter = adapter
        self.store = store
        self.classifier = classifier

        concurrency = config.get("concurrency", {})
        self.detail_concurrency = concurrency.get("detail", DEFAULT_DETAIL_CONCURRENCY)
        self.tag_concurrency = concurrency.get("tagging", DEFAULT_TAG_CONCURRENCY)

        output_config = config.get("output", {})
        self.keep_untagged = output_config.get("keep_untagged", False)

    async def scrape_source(self, fetcher: PageFetcher, query: SearchQuery) -> List[Listing]:
        """
        Scrape every results page for one search query.

        Args:
            fetcher: Page fetcher
            query: City path or city and keyword to search

        Returns:
            Listings annotated with sources=[query.source]
        """
        search_config = self.adapter.get_search_crawler_config()
        source = query.source
        first_url = self.adapter.build_search_url(query, page=1)
        logger.info(f"Scraping {source}: {first_url}")

        html = await fetcher.fetch(first_url, **search_config)
        if not html:
            logger.warning(f"No results page for {source}: {first_url}")
            return []

        page_count = self.adapter.get_page_count(html)
        if self.adapter.max_pages:
            page_count = min(page_count, self.adapter.max_pages)

        listings = self.adapter.parse_search_results(html)
        logger.info(f"{source} page 1/{page_count}: {len(listings)} listings")

        for page in range(2, page_count + 1):
            page_url = self.adapter.build_search_url(query, page=page)
            page_html = await fetcher.fetch(page_url, **search_config)
            if not page_html:
                logger.warning(f"Skipping {source} page {page}: fetch failed")
                continue
            page_listings = self.adapter.parse_search_results(page_html)
            logger.info(f"{source} page {page}/{page_count}: {len(page_listings)} listings")
            listings.extend(page_listings)

        for listing in listings:
            listing.sources = [source]
            if query.city and not listing.city:
                listing.city = query.city

        return listings

    async def collect_listings(self, fetcher: PageFetcher) -> List[Listing]:
        """Scrape all configured queries one after another."""
        queries = self.adapter.search_queries()

        async def scrape(query: SearchQuery, index: int) -> List[Listing]:
            return await self.scrape_source(fetcher, query)

        per_query = await collect_concurrent(queries, 1, scrape, label="search")
        listings = [listing for batch in per_query for listing in batch]
        logger.info(f"Collected {len(listings)} raw listings from {len(queries)} searches")
        return listings

    async def fetch_description(self, fetcher: PageFetcher, listing: Listing) -> Optional[str]:
        """Fetch and extract one detail page description, None on failure."""
        if not listing.link:
            return None
        html = await fetcher.fetch(listing.link, **self.adapter.get_crawler_config())
        if not html:
            return None
        return self.adapter.extract_description(html)

    async def enrich_descriptions(
        self, fetcher: PageFetcher, listings: List[Listing]
    ) -> List[Listing]:
        """Fill descriptions from detail pages; existing text is kept on failure."""

        async def enrich(listing: Listing, index: int) -> Listing:
            description = await self.fetch_description(fetcher, listing)
            if description:
                listing.description = description
            return listing

        await map_concurrent(listings, self.detail_concurrency, enrich, label="details")
        described = sum(1 for listing in listings if listing.has_description())
        logger.info(f"Descriptions available for {described}/{len(listings)} listings")
        return listings

    async def tag_listings(self, listings: List[Listing]) -> List[Listing]:
        """Tag listings from description and sources, keeping input order."""

        async def tag(listing: Listing, index: int) -> Listing:
            return await self.classifier.tag_listing_with_sources(listing)

        tagged = await map_concurrent(listings, self.tag_concurrency, tag, label="tagging")
        # A failed slot keeps the untagged input
        return [result or listing for result, listing in zip(tagged, listings)]

    def apply_source_tags(self, listings: List[Listing]) -> List[Listing]:
        """
        Union each listing's source-derived tags into its tag lists.

        Address dedup merges the sources of collapsed duplicates, so the
        survivor picks up the tags their sources imply.
        """
        for listing in listings:
            source_tags = map_sources_to_tags(listing.sources)
            listing.damage_tags = merge_unique(listing.damage_tags, source_tags["damage_tags"])
            listing.saletype_tags = merge_unique(
                listing.saletype_tags, source_tags["saletype_tags"]
            )
        return listings

    def persist(self, listings: List[Listing]) -> List[Listing]:
        """Insert listings; a store failure is logged and the input returned."""
        if not listings:
            return []
        try:
            return self.store.insert_many(listings)
        except Exception as e:
            logger.error(f"Failed to persist {len(listings)} listings: {e}")
            return listings

    async def run(self, fetcher: PageFetcher) -> List[Listing]:
        """
        Run the full crawl pipeline.

        Returns:
            Tagged, deduplicated listings (as inserted when persistence worked)
        """
        site = self.adapter.get_site_name()
        logger.info(f"Starting {site} crawl")

        raw = await self.collect_listings(fetcher)
        unique = dedupe_by_link(raw)
        logger.info(f"{len(unique)} unique listings after link dedup ({len(raw)} raw)")

        await self.enrich_descriptions(fetcher, unique)
        tagged = await self.tag_listings(unique)

        if self.keep_untagged:
            kept = tagged
        else:
            kept = [listing for listing in tagged if listing.has_tags()]
        logger.info(f"{len(kept)}/{len(tagged)} listings kept after tag filter")

        final = self.apply_source_tags(dedupe_by_address(kept))
        saved = self.persist(final)

        self._log_summary(saved)
        return saved

    async def retag_store(self) -> int:
        """
        Re-tag every stored listing from its description and sources.

        Returns:
            Number of listings updated
        """
        listings = self.store.find_all()
        logger.info(f"Re-tagging {len(listings)} stored listings")

        async def retag(listing: Listing, index: int) -> bool:
            tagged = await self.classifier.tag_listing_with_sources(listing)
            return self._save_tags(tagged)

        results = await map_concurrent(listings, self.tag_concurrency, retag, label="retag")
        updated = sum(1 for ok in results if ok)
        logger.info(f"Re-tagged {updated}/{len(listings)} stored listings")
        return updated

    async def backfill_descriptions(self, fetcher: PageFetcher) -> int:
        """
        Fetch descriptions for stored listings that have none, then re-tag them.

        Returns:
            Number of listings that received a description
        """
        listings = self.store.find_all(missing_description=True)
        logger.info(f"Backfilling descriptions for {len(listings)} stored listings")

        async def backfill(listing: Listing, index: int) -> bool:
            description = await self.fetch_description(fetcher, listing)
            if not description:
                return False

            try:
                updated = self.store.update_by_id(listing.id, {"description": description})
            except Exception as e:
                logger.error(f"Failed to store description for {listing.id}: {e}")
                return False
            if updated is None:
                logger.warning(f"Listing {listing.id} disappeared during backfill")
                return False

            tagged = await self.classifier.tag_listing_with_sources(updated)
            self._save_tags(tagged)
            return True

        results = await map_concurrent(
            listings, self.detail_concurrency, backfill, label="backfill"
        )
        filled = sum(1 for ok in results if ok)
        logger.info(f"Backfilled {filled}/{len(listings)} descriptions")
        return filled

    def _save_tags(self, listing: Listing) -> bool:
        try:
            updated = self.store.update_by_id(
                listing.id,
                {
                    "damage_tags": listing.damage_tags,
                    "saletype_tags": listing.saletype_tags,
                    "recommendation": listing.recommendation,
                },
            )
        except Exception as e:
            logger.error(f"Failed to store tags for {listing.id}: {e}")
            return False
        return updated is not None

    def _log_summary(self, listings: List[Listing]) -> None:
        damage = sum(1 for listing in listings if listing.damage_tags)
        sale = sum(1 for listing in listings if listing.saletype_tags)
        logger.info("=" * 60)
        logger.info(f"Listings saved: {len(listings)}")
        logger.info(f"With damage tags: {damage}")
        logger.info(f"With sale-type tags: {sale}")
        logger.info("=" * 60)


def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def load_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load configuration from config.json and apply environment overrides.

    A missing file yields the defaults. Recognized environment variables:
    OPENAI_API_KEY, OPENAI_MODEL, DETAIL_CONCURRENCY, TAG_CONCURRENCY,
    MONGO_URI, LOG_LEVEL.

    Raises:
        ValueError: On an unknown mode or a concurrency below 1
    """
    config_path = config_path or Path(__file__).parent / "config.json"
    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            config = json.load(f)
    else:
        logger.info(f"{config_path} not found, using defaults")
        config = {}

    config.setdefault("site", "redfin")
    config.setdefault("mode", "crawl")
    llm_config = config.setdefault("llm_settings", {})
    concurrency = config.setdefault("concurrency", {})
    storage_config = config.setdefault("storage", {})

    if os.environ.get("OPENAI_API_KEY"):
        llm_config["api_key"] = os.environ["OPENAI_API_KEY"]
    if os.environ.get("OPENAI_MODEL"):
        llm_config["model"] = os.environ["OPENAI_MODEL"]
    if os.environ.get("MONGO_URI"):
        storage_config["mongo_uri"] = os.environ["MONGO_URI"]
        storage_config.setdefault("backend", "mongo")
    if os.environ.get("LOG_LEVEL"):
        config["log_level"] = os.environ["LOG_LEVEL"]

    detail = _env_int("DETAIL_CONCURRENCY")
    if detail is not None:
        concurrency["detail"] = detail
    tagging = _env_int("TAG_CONCURRENCY")
    if tagging is not None:
        concurrency["tagging"] = tagging

    # Validate
    if config["mode"] not in MODES:
        raise ValueError(f"Unknown mode '{config['mode']}'. Expected one of {MODES}")
    for key in ("detail", "tagging"):
        if key not in concurrency:
            continue
        try:
            concurrency[key] = int(concurrency[key])
        except (TypeError, ValueError):
            raise ValueError(f"concurrency.{key} must be an integer, got {concurrency[key]!r}")
        if concurrency[key] < 1:
            raise ValueError(f"concurrency.{key} must be >= 1, got {concurrency[key]}")

    return config


async def main():
    """Main entry point for the listing crawler."""
    try:
        config = load_config()
    except (ValueError, json.JSONDecodeError) as e:
        logging.basicConfig(level=logging.INFO)
        logger.error(f"Invalid configuration: {e}")
        return

    logging.basicConfig(
        level=getattr(logging, str(config.get("log_level", "INFO")).upper(), logging.INFO),
        format="%(asctime)s - %(levelname)s - %(message)s",
    )
    # Request lines from the OpenAI client are noise at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    try:
        adapter = get_adapter(config)
        store = create_store(config)
        classifier = HybridClassifier.from_config(config)
        pipeline = ListingTagPipeline(config, adapter, store, classifier)

        mode = config["mode"]
        if mode == "retag":
            await pipeline.retag_store()
            return

        fetch_config = config.get("fetch", {})
        async with CrawlerPageFetcher(
            timeout=fetch_config.get("timeout", CrawlerPageFetcher.DEFAULT_TIMEOUT),
            headless=fetch_config.get("headless", True),
        ) as fetcher:
            if mode == "backfill":
                await pipeline.backfill_descriptions(fetcher)
            else:
                listings = await pipeline.run(fetcher)
                logger.info(f"Crawl complete! {len(listings)} tagged listings saved.")

    except Exception as e:
        logger.error(f"Unexpected error: {e}", exc_info=True)


if __name__ == "__main__":
    asyncio.run(main())
