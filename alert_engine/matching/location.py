"""Fuzzy matching of preferred-area fragments against a property's location.

A fragment is accepted when any of these holds, tried in order:

1. After stripping trailing region suffixes ("mawson lakes, australia" ->
   "mawson lakes"), it is a substring of "{city}, {state}", the city or the
   address, or one of those is a substring of it.
2. Every fragment token (alphanumeric word longer than two characters) has a
   city token (or, separately, an address token) that contains it, is
   contained by it, or is more than 80% similar.
3. At least 70% of the fragment tokens have a city token (or address token)
   that is more than 70% similar.
"""

import re
from typing import Iterable, List, Optional, Sequence

from alert_engine.config.models import DEFAULT_REGION_SUFFIXES
from alert_engine.utils.text import normalize_text

from .similarity import similarity

STRICT_TOKEN_SIMILARITY = 0.8
LOOSE_TOKEN_SIMILARITY = 0.7
LOOSE_TOKEN_COVERAGE = 0.7
MIN_TOKEN_LENGTH = 3

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def tokenize(text: Optional[str]) -> List[str]:
    """Split text into lowercase alphanumeric words longer than two characters."""
    return [t for t in _TOKEN_RE.findall(normalize_text(text)) if len(t) >= MIN_TOKEN_LENGTH]


class LocationMatcher:
    """Matches location fragments against city/state/address.

    Args:
        region_suffixes: Trailing country/region tokens to strip from fragments
    """

    def __init__(self, region_suffixes: Optional[Iterable[str]] = None):
        suffixes = [
            s.strip().lower()
            for s in (DEFAULT_REGION_SUFFIXES if region_suffixes is None else region_suffixes)
            if s and s.strip()
        ]
        self.region_suffixes = tuple(suffixes)
        if suffixes:
            alternation = "|".join(re.escape(s) for s in sorted(suffixes, key=len, reverse=True))
            self._suffix_re = re.compile(rf"(?:^|[\s,])(?:{alternation})[\s,]*$")
        else:
            self._suffix_re = None

    def strip_region_suffix(self, fragment: str) -> str:
        """Remove trailing region suffixes and commas.

        The original fragment is kept if stripping would leave nothing.
        """
        original = normalize_text(fragment)
        current = original.rstrip(", ")
        while self._suffix_re is not None:
            stripped = self._suffix_re.sub("", current).rstrip(", ")
            if stripped == current:
                break
            current = stripped
        return current or original

    def matches(
        self,
        fragment: str,
        city: Optional[str],
        state: Optional[str],
        address: Optional[str] = None,
    ) -> bool:
        """Return True if the fragment refers to the property's location."""
        cleaned = self.strip_region_suffix(fragment)
        if not cleaned:
            return False

        city_text = normalize_text(city)
        state_text = normalize_text(state)
        address_text = normalize_text(address)
        label = ", ".join(part for part in (city_text, state_text) if part)

        for haystack in (label, city_text, address_text):
            if haystack and (cleaned in haystack or haystack in cleaned):
                return True

        fragment_tokens = tokenize(cleaned)
        if not fragment_tokens:
            return False

        haystack_tokens = [tokens for tokens in (tokenize(city_text), tokenize(address_text)) if tokens]

        for tokens in haystack_tokens:
            if all(_strict_token_hit(ft, tokens) for ft in fragment_tokens):
                return True

        for tokens in haystack_tokens:
            hits = sum(
                1
                for ft in fragment_tokens
                if any(similarity(ft, t) > LOOSE_TOKEN_SIMILARITY for t in tokens)
            )
            if hits / len(fragment_tokens) >= LOOSE_TOKEN_COVERAGE:
                return True

        return False

    def any_matches(
        self,
        fragments: Sequence[str],
        city: Optional[str],
        state: Optional[str],
        address: Optional[str] = None,
    ) -> bool:
        """True on the first fragment that matches."""
        return any(self.matches(fragment, city, state, address) for fragment in fragments)


def _strict_token_hit(token: str, candidates: Sequence[str]) -> bool:
    return any(
        token in candidate
        or candidate in token
        or similarity(token, candidate) > STRICT_TOKEN_SIMILARITY
        for candidate in candidates
    )


_default_matcher = LocationMatcher()


def strip_region_suffix(fragment: str) -> str:
    """Strip region suffixes using the default suffix set."""
    return _default_matcher.strip_region_suffix(fragment)


def location_matches(
    fragment: str,
    city: Optional[str],
    state: Optional[str],
    address: Optional[str] = None,
) -> bool:
    """Match one fragment using the default suffix set."""
    return _default_matcher.matches(fragment, city, state, address)
