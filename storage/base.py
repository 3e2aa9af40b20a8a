"""Abstract listing store interface."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence

from models.listing import Listing

# Fields callers may change through update_by_id
UPDATABLE_FIELDS = {
    "image_url",
    "address",
    "price",
    "beds",
    "baths",
    "space",
    "link",
    "description",
    "city",
    "sources",
    "damage_tags",
    "saletype_tags",
    "recommendation",
}


def check_update_fields(fields: Dict[str, Any]) -> None:
    """Raise ValueError for fields that are not updatable listing attributes."""
    unknown = set(fields) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot update unknown listing fields: {sorted(unknown)}")


class ListingStore(ABC):
    """
    Keyed collection of listings.

    Each listing is an independent document; no operation spans records.
    """

    @abstractmethod
    def insert_many(self, listings: Sequence[Listing]) -> List[Listing]:
        """
        Insert listings as new documents.

        Args:
            listings: Listings to insert (ids ignored)

        Returns:
            Inserted listings with id and created_at set
        """
        pass

    @abstractmethod
    def find_all(
        self,
        link: Optional[str] = None,
        missing_description: bool = False,
        tagged_only: bool = False,
    ) -> List[Listing]:
        """
        Return listings matching every given filter.

        Args:
            link: Only listings with exactly this link
            missing_description: Only listings whose description is null or blank
            tagged_only: Only listings with at least one damage or sale-type tag
        """
        pass

    @abstractmethod
    def update_by_id(self, listing_id: str, fields: Dict[str, Any]) -> Optional[Listing]:
        """
        Set fields on one listing and stamp updated_at.

        Returns:
            The updated listing, or None if the id is unknown

        Raises:
            ValueError: If fields contains a non-updatable key
        """
        pass

    @abstractmethod
    def find_by_id(self, listing_id: str) -> Optional[Listing]:
        pass
