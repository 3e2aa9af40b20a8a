"""Collapse duplicate listings by a chosen key, unioning their sources."""

import logging
from typing import Callable, Dict, List, Optional, Sequence, Union

from models.listing import Listing
from utils.keyword_tagger import merge_unique

logger = logging.getLogger(__name__)

KeySelector = Union[str, Callable[[Listing], Optional[str]]]


def _key_of(listing: Listing, key: KeySelector) -> Optional[str]:
    if callable(key):
        return key(listing)
    return getattr(listing, key, None)


def dedupe_listings(
    listings: Sequence[Listing],
    key: KeySelector = "link",
    drop_missing_key: bool = False,
) -> List[Listing]:
    """
    Keep one listing per key value, first occurrence wins.

    A repeat only contributes its sources, which are unioned into the
    first-seen record (that record is updated in place). Every other field of
    the repeat is discarded.

    Args:
        listings: Listings in discovery order
        key: Attribute name ("link", "address") or a callable returning the key
        drop_missing_key: Drop listings whose key is empty; otherwise they are
            kept as separate, unmerged entries

    Returns:
        Deduplicated listings in first-seen order
    """
    by_key: Dict[str, Listing] = {}
    result: List[Listing] = []
    dropped = 0

    for listing in listings:
        value = _key_of(listing, key)
        if not value:
            if drop_missing_key:
                dropped += 1
            else:
                result.append(listing)
            continue

        existing = by_key.get(value)
        if existing is None:
            by_key[value] = listing
            result.append(listing)
        else:
            existing.sources = merge_unique(existing.sources, listing.sources)

    key_name = key if isinstance(key, str) else getattr(key, "__name__", "key")
    logger.debug(
        f"Deduped {len(listings)} listings by {key_name}: {len(result)} kept, "
        f"{dropped} dropped without key"
    )
    if dropped:
        logger.info(f"Dropped {dropped} of {len(listings)} listings without {key_name}")
    return result


def dedupe_by_link(listings: Sequence[Listing]) -> List[Listing]:
    """Dedupe within a crawl run; link-less listings are kept unmerged."""
    return dedupe_listings(listings, key="link", drop_missing_key=False)


def dedupe_by_address(listings: Sequence[Listing]) -> List[Listing]:
    """Dedupe right before insert; listings without an address are dropped."""
    return dedupe_listings(listings, key="address", drop_missing_key=True)
