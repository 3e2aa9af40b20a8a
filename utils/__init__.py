"""Utility modules for normalization, tagging, dedup and batching."""

from .concurrency import collect_concurrent, map_concurrent
from .dedup import dedupe_by_address, dedupe_by_link, dedupe_listings
from .extractors import clean_num, join_url
from .keyword_tagger import heuristic_tags, map_sources_to_tags

__all__ = [
    "clean_num",
    "join_url",
    "heuristic_tags",
    "map_sources_to_tags",
    "map_concurrent",
    "collect_concurrent",
    "dedupe_listings",
    "dedupe_by_link",
    "dedupe_by_address",
]
