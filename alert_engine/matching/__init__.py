"""Property-to-buyer matching.

This module provides:
- similarity / levenshtein_distance: normalized edit-distance similarity
- LocationMatcher / location_matches: fuzzy preferred-area matching
- MatchScorer / accept_match: weighted scoring and the acceptance rule
- MatchResult: scoring outcome for one (buyer, property) pair
"""

from .engine import MatchScorer, accept_match
from .location import LocationMatcher, location_matches, strip_region_suffix, tokenize
from .models import MatchResult
from .similarity import levenshtein_distance, similarity

__all__ = [
    "MatchScorer",
    "accept_match",
    "LocationMatcher",
    "location_matches",
    "strip_region_suffix",
    "tokenize",
    "MatchResult",
    "levenshtein_distance",
    "similarity",
]
