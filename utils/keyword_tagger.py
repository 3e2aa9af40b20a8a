"""Keyword-based tagging against the damage and sale-type vocabularies."""

import re
from typing import Dict, Iterable, List, Optional, Pattern, Sequence

from models.constants import DAMAGE_CANON, SALE_CANON, TLC_DAMAGE_TAG, TLC_SALE_TAG

TLC_PATTERN: Pattern = re.compile(r"\bneeds\s+tlc\b", re.IGNORECASE)


def _add_unique(tags: List[str], tag: str) -> None:
    if tag not in tags:
        tags.append(tag)


def merge_unique(*lists: Optional[Iterable[str]]) -> List[str]:
    """Union several string lists, keeping first-seen order."""
    merged: List[str] = []
    for values in lists:
        for value in values or []:
            _add_unique(merged, value)
    return merged


def heuristic_tags(
    description: Optional[str],
    damage_canon: Sequence[str] = DAMAGE_CANON,
    sale_canon: Sequence[str] = SALE_CANON,
) -> Dict[str, List[str]]:
    """
    Tag a description by substring match against the keyword vocabularies.

    Args:
        description: Free listing text (None is treated as "")
        damage_canon: Lower-cased damage keywords
        sale_canon: Lower-cased sale-type keywords

    Returns:
        Dict with "damage_tags" and "saletype_tags" lists
    """
    text = (description or "").lower()

    damage_tags = [keyword for keyword in damage_canon if keyword in text]
    saletype_tags = [keyword for keyword in sale_canon if keyword in text]

    # "needs TLC" adds two synthetic tags, the sale one is outside SALE_CANON
    if TLC_PATTERN.search(text):
        _add_unique(damage_tags, TLC_DAMAGE_TAG)
        _add_unique(saletype_tags, TLC_SALE_TAG)

    return {
        "damage_tags": merge_unique(damage_tags),
        "saletype_tags": merge_unique(saletype_tags),
    }


def map_sources_to_tags(
    sources: Optional[Iterable[str]],
    damage_canon: Sequence[str] = DAMAGE_CANON,
    sale_canon: Sequence[str] = SALE_CANON,
) -> Dict[str, List[str]]:
    """
    Map provenance tokens (search terms, city paths) onto vocabulary tags.

    An exact sale-type match wins and skips the damage scan for that source.
    Otherwise a damage keyword is added when it equals, contains or is
    contained in the source, so "fire" yields "fire damage".
    """
    damage_tags: List[str] = []
    saletype_tags: List[str] = []

    for source in sources or []:
        if not isinstance(source, str):
            continue
        token = source.strip().lower()
        if not token:
            continue

        if token in sale_canon:
            _add_unique(saletype_tags, token)
            continue

        for keyword in damage_canon:
            if keyword == token or keyword in token or token in keyword:
                _add_unique(damage_tags, keyword)

    return {"damage_tags": damage_tags, "saletype_tags": saletype_tags}
