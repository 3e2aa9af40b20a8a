"""Data models for real-estate listings."""

from .constants import DAMAGE_CANON, SALE_CANON
from .listing import Listing

__all__ = [
    "Listing",
    "DAMAGE_CANON",
    "SALE_CANON",
]
