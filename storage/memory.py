"""In-process listing store for dry runs and tests."""

import copy
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from models.listing import Listing
from storage.base import ListingStore, check_update_fields

logger = logging.getLogger(__name__)


class InMemoryListingStore(ListingStore):
    """ListingStore keeping documents in a dict keyed by generated id."""

    def __init__(self):
        self._documents: Dict[str, Dict[str, Any]] = {}

    def __len__(self) -> int:
        return len(self._documents)

    def _to_listing(self, listing_id: str) -> Listing:
        document = copy.deepcopy(self._documents[listing_id])
        document["_id"] = listing_id
        return Listing.from_dict(document)

    def insert_many(self, listings: Sequence[Listing]) -> List[Listing]:
        inserted: List[Listing] = []
        now = datetime.now(timezone.utc)
        for listing in listings:
            listing_id = uuid.uuid4().hex
            document = listing.to_document()
            document["createdAt"] = now
            document["updatedAt"] = now
            self._documents[listing_id] = copy.deepcopy(document)
            inserted.append(self._to_listing(listing_id))

        logger.debug(f"Inserted {len(inserted)} listings in memory")
        return inserted

    def find_all(
        self,
        link: Optional[str] = None,
        missing_description: bool = False,
        tagged_only: bool = False,
    ) -> List[Listing]:
        results: List[Listing] = []
        for listing_id in self._documents:
            listing = self._to_listing(listing_id)
            if link is not None and listing.link != link:
                continue
            if missing_description and listing.has_description():
                continue
            if tagged_only and not listing.has_tags():
                continue
            results.append(listing)
        return results

    def update_by_id(self, listing_id: str, fields: Dict[str, Any]) -> Optional[Listing]:
        check_update_fields(fields)
        document = self._documents.get(listing_id)
        if document is None:
            return None

        document.update(copy.deepcopy(fields))
        document["updatedAt"] = datetime.now(timezone.utc)
        return self._to_listing(listing_id)

    def find_by_id(self, listing_id: str) -> Optional[Listing]:
        if listing_id not in self._documents:
            return None
        return self._to_listing(listing_id)
