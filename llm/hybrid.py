"""Hybrid listing tagger: LLM classification with keyword-heuristic fallback."""

import logging
from dataclasses import replace
from typing import Any, Callable, Dict, List, Optional, Tuple

from llm.classifier import OpenAIClassifier
from models.constants import (
    DAMAGE_CANON,
    HEURISTIC_FALLBACK_RECOMMENDATION,
    HEURISTIC_NO_KEY_RECOMMENDATION,
    LLM_DEFAULT_RECOMMENDATION,
    NO_DESCRIPTION_RECOMMENDATION,
    SALE_CANON,
)
from models.listing import Listing
from utils.keyword_tagger import heuristic_tags, map_sources_to_tags, merge_unique

logger = logging.getLogger(__name__)

# Tagging outcomes, reported in debug logs
MODE_NO_DESCRIPTION = "no-description"
MODE_HEURISTIC_ONLY = "heuristic-only"
MODE_LLM = "llm"
MODE_HEURISTIC_FALLBACK = "heuristic-fallback"


class HybridClassifier:
    """
    Tag listings with the LLM when a key is configured, heuristics otherwise.

    The provider client is built by `client_factory` on first use and reused
    for every later call. Any provider failure degrades to heuristic tags, so
    tag_listing never raises.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        client_factory: Optional[Callable[[], Any]] = None,
    ):
        """
        Initialize the hybrid classifier.

        Args:
            api_key: Classifier credential; None/empty selects heuristic-only mode
            client_factory: Zero-argument callable returning an object with an
                async classify(description, allowed_damage, allowed_sale) method
        """
        self.api_key = api_key or None
        self.client_factory = client_factory
        self._client: Optional[Any] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "HybridClassifier":
        """Build from the "llm_settings" section of config.json."""
        llm_config = config.get("llm_settings", {})
        api_key = llm_config.get("api_key")

        def factory() -> OpenAIClassifier:
            return OpenAIClassifier(
                api_key=api_key,
                model=llm_config.get("model", OpenAIClassifier.DEFAULT_MODEL),
                base_url=llm_config.get("base_url", OpenAIClassifier.DEFAULT_BASE_URL),
                timeout=llm_config.get("timeout", OpenAIClassifier.DEFAULT_TIMEOUT),
                max_retries=llm_config.get("max_retries", OpenAIClassifier.MAX_RETRIES),
            )

        if api_key:
            logger.info(f"LLM tagging enabled with model {llm_config.get('model', OpenAIClassifier.DEFAULT_MODEL)}")
        else:
            logger.info("No LLM key configured, using heuristic tagging only")

        return cls(api_key=api_key, client_factory=factory)

    @property
    def llm_enabled(self) -> bool:
        return bool(self.api_key and self.client_factory)

    def _get_client(self) -> Any:
        # No await between the check and the assignment, so concurrent
        # workers on one event loop share a single instance
        if self._client is None:
            self._client = self.client_factory()
        return self._client

    async def classify_description(
        self, description: Optional[str], label: str = ""
    ) -> Tuple[Dict[str, List[str]], str, str]:
        """
        Tag a description.

        Returns:
            (tags dict, recommendation, mode) where tags has "damage_tags" and
            "saletype_tags"
        """
        if not description or not description.strip():
            return (
                {"damage_tags": [], "saletype_tags": []},
                NO_DESCRIPTION_RECOMMENDATION,
                MODE_NO_DESCRIPTION,
            )

        heuristic = heuristic_tags(description)

        if not self.llm_enabled:
            return heuristic, HEURISTIC_NO_KEY_RECOMMENDATION, MODE_HEURISTIC_ONLY

        try:
            client = self._get_client()
            result = await client.classify(description, DAMAGE_CANON, SALE_CANON)
        except Exception as e:
            logger.warning(f"LLM tagging failed for {label or 'listing'}, using heuristics: {e}")
            return heuristic, HEURISTIC_FALLBACK_RECOMMENDATION, MODE_HEURISTIC_FALLBACK

        tags = {
            "damage_tags": merge_unique(result.damage, heuristic["damage_tags"]),
            "saletype_tags": merge_unique(result.sale_types, heuristic["saletype_tags"]),
        }
        return tags, result.rationale or LLM_DEFAULT_RECOMMENDATION, MODE_LLM

    async def tag_listing(self, listing: Listing) -> Listing:
        """
        Return a copy of the listing with tags and recommendation set.

        Args:
            listing: Listing to tag (not modified)

        Returns:
            New Listing with damage_tags, saletype_tags and recommendation
        """
        tags, recommendation, mode = await self.classify_description(
            listing.description, label=listing.link
        )
        logger.debug(
            f"Tagged {listing.link or listing.address} ({mode}): "
            f"{tags['damage_tags']} / {tags['saletype_tags']}"
        )
        return replace(
            listing,
            damage_tags=tags["damage_tags"],
            saletype_tags=tags["saletype_tags"],
            recommendation=recommendation,
        )

    async def tag_listing_with_sources(self, listing: Listing) -> Listing:
        """Tag from the description, then add the tags implied by its sources."""
        tagged = await self.tag_listing(listing)
        source_tags = map_sources_to_tags(listing.sources)

        tagged.damage_tags = merge_unique(tagged.damage_tags, source_tags["damage_tags"])
        tagged.saletype_tags = merge_unique(tagged.saletype_tags, source_tags["saletype_tags"])
        return tagged
