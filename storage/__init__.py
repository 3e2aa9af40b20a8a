"""Listing persistence backends."""

import logging
from typing import Any, Dict

from storage.base import ListingStore
from storage.memory import InMemoryListingStore

logger = logging.getLogger(__name__)


def create_store(config: Dict[str, Any]) -> ListingStore:
    """
    Build the listing store named by config["storage"]["backend"].

    Raises:
        ValueError: If the backend is not supported
    """
    storage_config = config.get("storage", {})
    backend = storage_config.get("backend", "memory").lower()

    if backend == "memory":
        logger.info("Using in-memory listing store (nothing is persisted)")
        return InMemoryListingStore()

    if backend == "mongo":
        from storage.mongo import MongoListingStore

        return MongoListingStore(
            uri=storage_config.get("mongo_uri"),
            database=storage_config.get("database", "estate"),
            collection=storage_config.get("collection", "estate_homes"),
        )

    raise ValueError(f"Unsupported storage backend: {backend}. Supported: 'memory', 'mongo'")


__all__ = ["create_store", "ListingStore", "InMemoryListingStore"]
