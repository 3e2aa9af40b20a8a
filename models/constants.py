"""Controlled vocabularies and fixed strings used by the tagging pipeline."""

from typing import Iterable, List

# Maintained keyword lists (mixed case as they appear in listing copy)
DAMAGE_KEYWORDS = [
    "repair",
    "fixer-upper",
    "damage",
    "insurance claim",
    "mitigation",
    "renovate",
    "restoration",
    "storm damage",
    "water damage",
    "tree damage",
    "fire damage",
    "mold",
    "asbestos",
    "TLC",
]

SALE_TYPE_KEYWORDS = [
    "as-is",
    "foreclosure",
    "pre-foreclosure",
    "short sale",
    "lien",
    "tax delinquent",
    "divorce",
    "bankruptcy",
    "probate",
    "off market",
    "inheritance",
    "flip",
]

# Shorter terms typed into keyword-search portals. The source mapper expands
# "fire" back onto "fire damage" and so on.
DAMAGE_SEARCH_KEYWORDS = [
    "TLC",
    "repair",
    "fixer-upper",
    "damage",
    "insurance claim",
    "mitigation",
    "renovate",
    "restoration",
    "storm",
    "water",
    "tree",
    "fire",
    "mold",
    "asbestos",
]


def canonicalize_keywords(words: Iterable[str]) -> List[str]:
    """Lower-case and trim keywords, dropping blanks and repeats (first wins)."""
    canon: List[str] = []
    for word in words:
        lowered = (word or "").strip().lower()
        if lowered and lowered not in canon:
            canon.append(lowered)
    return canon


DAMAGE_CANON = tuple(canonicalize_keywords(DAMAGE_KEYWORDS))
SALE_CANON = tuple(canonicalize_keywords(SALE_TYPE_KEYWORDS))

# Terms searched per city in keyword mode, damage terms first
SEARCH_TERMS = tuple(canonicalize_keywords(DAMAGE_SEARCH_KEYWORDS + SALE_TYPE_KEYWORDS))

# Synthetic tags added by the "needs tlc" phrase match. "needs tlc" is not a
# member of SALE_CANON.
TLC_DAMAGE_TAG = "tlc"
TLC_SALE_TAG = "needs tlc"

# Recommendation texts
NO_DESCRIPTION_RECOMMENDATION = "No description."
HEURISTIC_NO_KEY_RECOMMENDATION = "Heuristic tags (no LLM key provided)."
HEURISTIC_FALLBACK_RECOMMENDATION = "Heuristic tags (LLM tagging failed)."
LLM_DEFAULT_RECOMMENDATION = "LLM tags"

# Default worker pool sizes
DEFAULT_DETAIL_CONCURRENCY = 3
DEFAULT_TAG_CONCURRENCY = 4
