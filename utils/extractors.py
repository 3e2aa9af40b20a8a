"""Numeric and text normalizers for scraped listing fragments."""

import re
from typing import Optional, Pattern

NUMBER_PATTERN: Pattern = re.compile(r"[\d.]+")
ABSOLUTE_URL_PATTERN: Pattern = re.compile(r"^https?://", re.IGNORECASE)
WHITESPACE_PATTERN: Pattern = re.compile(r"\s+")


def _first_number(text: Optional[str]) -> Optional[float]:
    if not text:
        return None
    match = NUMBER_PATTERN.search(str(text).replace(",", ""))
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        # e.g. "1.2.3" or a lone "."
        return None


def clean_num(text: Optional[str]) -> Optional[int]:
    """
    Extract an integer from a noisy text fragment.

    Commas are stripped, the first run of digits/dots is parsed and the value
    is truncated toward zero.

    Examples:
        "$350,000" -> 350000
        "3 Beds" -> 3
        "2.5 Baths" -> 2
        "n/a" -> None
    """
    value = _first_number(text)
    if value is None:
        return None
    return int(value)


def clean_decimal(text: Optional[str]) -> Optional[float]:
    """Like clean_num but keeps the fraction ("2.5 Baths" -> 2.5)."""
    return _first_number(text)


def join_url(base: str, href: Optional[str]) -> str:
    """
    Resolve a card href against the site base URL.

    Absolute http(s) links are returned unchanged, protocol-relative links get
    https, anything else is appended to the base with exactly one slash.
    An empty href yields "".
    """
    if not href:
        return ""
    if ABSOLUTE_URL_PATTERN.match(href):
        return href
    if href.startswith("//"):
        return f"https:{href}"
    return f"{re.sub(r'/$', '', base)}/{re.sub(r'^/', '', href)}"


def collapse_whitespace(text: Optional[str]) -> Optional[str]:
    """Collapse whitespace runs (including nbsp) to single spaces; None if blank."""
    if text is None:
        return None
    collapsed = WHITESPACE_PATTERN.sub(" ", text.replace("\u00a0", " ")).strip()
    return collapsed or None


def format_space(sqft: Optional[int]) -> str:
    """Format living area as "<sqft> sqft", or "" when unknown."""
    return f"{sqft} sqft" if sqft else ""
