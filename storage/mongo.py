"""MongoDB-backed listing store."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import MongoClient, ReturnDocument
from pymongo.collection import Collection

from models.listing import Listing
from storage.base import ListingStore, check_update_fields

logger = logging.getLogger(__name__)

DEFAULT_DATABASE = "estate"
DEFAULT_COLLECTION = "estate_homes"


def build_query(
    link: Optional[str] = None,
    missing_description: bool = False,
    tagged_only: bool = False,
) -> Dict[str, Any]:
    """Translate ListingStore.find_all filters into a Mongo query document."""
    clauses: List[Dict[str, Any]] = []

    if link is not None:
        clauses.append({"link": link})

    if missing_description:
        clauses.append(
            {
                "$or": [
                    {"description": None},
                    {"description": {"$regex": r"^\s*$"}},
                ]
            }
        )

    if tagged_only:
        clauses.append(
            {
                "$or": [
                    {"damage_tags.0": {"$exists": True}},
                    {"saletype_tags.0": {"$exists": True}},
                ]
            }
        )

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def _object_id(listing_id: str) -> Optional[ObjectId]:
    try:
        return ObjectId(listing_id)
    except (InvalidId, TypeError):
        return None


class MongoListingStore(ListingStore):
    """ListingStore over a pymongo collection."""

    def __init__(
        self,
        uri: Optional[str] = None,
        database: str = DEFAULT_DATABASE,
        collection: str = DEFAULT_COLLECTION,
        mongo_collection: Optional[Collection] = None,
    ):
        """
        Connect to the listing collection.

        Args:
            uri: MongoDB connection string
            database: Database name
            collection: Collection name
            mongo_collection: Existing collection to use instead of connecting
        """
        if mongo_collection is not None:
            self._client = None
            self.collection = mongo_collection
        else:
            if not uri:
                raise ValueError("MongoListingStore requires a mongo_uri")
            self._client = MongoClient(uri)
            self.collection = self._client[database][collection]
        logger.info(f"Using Mongo collection {self.collection.full_name}")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()

    def insert_many(self, listings: Sequence[Listing]) -> List[Listing]:
        if not listings:
            return []

        now = datetime.now(timezone.utc)
        documents = []
        for listing in listings:
            document = listing.to_document()
            document["createdAt"] = now
            document["updatedAt"] = now
            documents.append(document)

        result = self.collection.insert_many(documents, ordered=False)
        inserted = []
        for document, inserted_id in zip(documents, result.inserted_ids):
            document["_id"] = inserted_id
            inserted.append(Listing.from_dict(document))

        logger.info(f"Inserted {len(inserted)} listings into {self.collection.name}")
        return inserted

    def find_all(
        self,
        link: Optional[str] = None,
        missing_description: bool = False,
        tagged_only: bool = False,
    ) -> List[Listing]:
        query = build_query(link, missing_description, tagged_only)
        return [Listing.from_dict(document) for document in self.collection.find(query)]

    def update_by_id(self, listing_id: str, fields: Dict[str, Any]) -> Optional[Listing]:
        check_update_fields(fields)
        object_id = _object_id(listing_id)
        if object_id is None:
            return None

        update = dict(fields)
        update["updatedAt"] = datetime.now(timezone.utc)
        document = self.collection.find_one_and_update(
            {"_id": object_id},
            {"$set": update},
            return_document=ReturnDocument.AFTER,
        )
        return Listing.from_dict(document) if document else None

    def find_by_id(self, listing_id: str) -> Optional[Listing]:
        object_id = _object_id(listing_id)
        if object_id is None:
            return None
        document = self.collection.find_one({"_id": object_id})
        return Listing.from_dict(document) if document else None
