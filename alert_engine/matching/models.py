"""Data models for the matching engine."""

from dataclasses import dataclass, field
from typing import Tuple

# Criterion tags recorded in MatchResult.matched_criteria
TAG_PRICE_MIN = "price_min"
TAG_PRICE_MAX = "price_max"
TAG_BEDROOMS = "bedrooms"
TAG_BATHROOMS = "bathrooms"
TAG_GARAGES = "garages"
TAG_LOCATION = "location"
TAG_PROPERTY_TYPE = "property_type"
TAG_SQUARE_FEET_MIN = "square_feet_min"
TAG_SQUARE_FEET_MAX = "square_feet_max"
TAG_FEATURES = "features"
FEATURE_TAG_PREFIX = "feature_"


def is_feature_detail_tag(tag: str) -> bool:
    """True for per-feature tags like ``feature_swimming_pool``."""
    return tag.startswith(FEATURE_TAG_PREFIX)


@dataclass(frozen=True)
class MatchResult:
    """Result of scoring one property against one buyer's criteria.

    Attributes:
        buyer_id: Buyer the criteria belong to
        property_id: Property that was scored
        normalized_score: raw_score / total_criteria, clamped to [0, 1]
        raw_score: Sum of the weights of matched criteria
        total_criteria: Number of criteria the buyer actually specified
        matched_criteria: Criterion tags in evaluation order. When any
            preferred feature matches, the group tag ``features`` is
            followed by one ``feature_<slug>`` tag per matched feature.
            The group tag counts once towards matched_criteria_count; the
            per-feature tags do not count.
        is_match: Acceptance decision
    """

    buyer_id: str
    property_id: str
    normalized_score: float
    raw_score: float
    total_criteria: int
    matched_criteria: Tuple[str, ...] = field(default_factory=tuple)
    is_match: bool = False

    @property
    def matched_criteria_count(self) -> int:
        """Number of matched criteria, not counting per-feature detail tags."""
        return sum(1 for tag in self.matched_criteria if not is_feature_detail_tag(tag))

    @property
    def matched_features(self) -> Tuple[str, ...]:
        """Slugs of the individually matched features."""
        return tuple(
            tag[len(FEATURE_TAG_PREFIX):]
            for tag in self.matched_criteria
            if is_feature_detail_tag(tag)
        )
