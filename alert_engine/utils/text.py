"""Small text helpers for preference normalization and criterion tags."""

import re
from typing import Iterable, List, Optional

_WHITESPACE_RE = re.compile(r"\s+")
_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize_text(value: Optional[str]) -> str:
    """Lowercase, trim and collapse internal whitespace.

    Args:
        value: Text to normalize (None is treated as empty)

    Returns:
        Normalized text, empty string for None/blank input
    """
    if not value:
        return ""
    return _WHITESPACE_RE.sub(" ", str(value).strip().lower())


def normalize_terms(values: Optional[Iterable[str]]) -> List[str]:
    """Normalize a sequence of terms, dropping blanks and duplicates.

    First-seen order is preserved.
    """
    if not values:
        return []

    seen = set()
    terms = []
    for value in values:
        term = normalize_text(value)
        if term and term not in seen:
            seen.add(term)
            terms.append(term)
    return terms


def slugify(value: str) -> str:
    """Convert a feature name to a tag-safe slug ("Swimming Pool" -> "swimming_pool")."""
    return _SLUG_RE.sub("_", normalize_text(value)).strip("_")


def humanize_slug(slug: str) -> str:
    """Reverse of slugify for display ("swimming_pool" -> "Swimming pool")."""
    words = slug.replace("_", " ").strip()
    return words[:1].upper() + words[1:]
