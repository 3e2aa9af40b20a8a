"""Real-estate listing data model."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

# Store document keys that differ from attribute names
_DOCUMENT_ALIASES = {
    "_id": "id",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}


def _unique(values: Optional[List[str]]) -> List[str]:
    seen: List[str] = []
    for value in values or []:
        if value not in seen:
            seen.append(value)
    return seen


@dataclass
class Listing:
    """One property record discovered on a listing site, enriched with tags."""

    # Canonical absolute detail-page URL, primary dedup key
    link: str = ""

    # Card fields (any may be missing on a partial parse)
    image_url: Optional[str] = None
    address: Optional[str] = None
    price: Optional[int] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    # "" means unknown, unlike the numeric fields which use None
    space: str = ""

    description: Optional[str] = None
    city: Optional[str] = None

    # Provenance: search keyword or city path that produced this hit
    sources: List[str] = field(default_factory=list)

    # Tagging results
    damage_tags: List[str] = field(default_factory=list)
    saletype_tags: List[str] = field(default_factory=list)
    recommendation: str = ""

    # Store identity and timestamps
    id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        self.sources = _unique(self.sources)
        if self.space is None:
            self.space = ""

    def has_description(self) -> bool:
        """True if the description has any non-whitespace text."""
        return bool(self.description and self.description.strip())

    def has_tags(self) -> bool:
        """True if at least one damage or sale-type tag is set."""
        return bool(self.damage_tags or self.saletype_tags)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: Dict[str, Any] = {}
        for key, value in self.__dict__.items():
            if isinstance(value, datetime):
                result[key] = value.isoformat()
            elif isinstance(value, list):
                result[key] = list(value)
            else:
                result[key] = value
        return result

    def to_document(self) -> Dict[str, Any]:
        """
        Convert to a store document.

        The id is left out (the store owns it) and timestamps use the
        camelCase names the collection is indexed on.
        """
        document = {
            "image_url": self.image_url,
            "address": self.address,
            "price": self.price,
            "beds": self.beds,
            "baths": self.baths,
            "space": self.space,
            "link": self.link,
            "description": self.description,
            "city": self.city,
            "sources": list(self.sources),
            "damage_tags": list(self.damage_tags),
            "saletype_tags": list(self.saletype_tags),
            "recommendation": self.recommendation,
        }
        if self.created_at is not None:
            document["createdAt"] = self.created_at
        if self.updated_at is not None:
            document["updatedAt"] = self.updated_at
        return document

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Listing":
        """Create instance from a dictionary or a store document."""
        data = {_DOCUMENT_ALIASES.get(k, k): v for k, v in data.items()}

        if data.get("id") is not None:
            data["id"] = str(data["id"])

        # Handle datetime conversion
        for key in ("created_at", "updated_at"):
            if isinstance(data.get(key), str):
                data[key] = datetime.fromisoformat(data[key])

        for key in ("sources", "damage_tags", "saletype_tags"):
            if data.get(key) is None:
                data.pop(key, None)

        if data.get("recommendation") is None:
            data.pop("recommendation", None)
        if data.get("link") is None:
            data.pop("link", None)

        # Filter to only valid fields
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered_data = {k: v for k, v in data.items() if k in valid_fields}

        return cls(**filtered_data)
