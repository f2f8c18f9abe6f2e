"""Utility helpers for timestamps and text normalization."""

from .text import humanize_slug, normalize_terms, normalize_text, slugify
from .timestamps import ensure_utc, from_storage, start_of_day, to_storage, utc_now

__all__ = [
    # Timestamps
    "utc_now",
    "ensure_utc",
    "to_storage",
    "from_storage",
    "start_of_day",
    # Text
    "normalize_text",
    "normalize_terms",
    "slugify",
    "humanize_slug",
]
