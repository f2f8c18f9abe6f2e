"""Weighted multi-criteria scoring of a property against buyer criteria.

This module implements the matching logic that:
1. Counts the criteria a buyer actually specified
2. Adds the weight of every criterion the property satisfies
3. Records matched criterion tags (plus one tag per matched feature)
4. Accepts or rejects the match with a dual threshold
"""

import logging
from typing import List, Optional

from alert_engine.domain.models import Property
from alert_engine.logging import get_logger
from alert_engine.normalization.models import BuyerCriteria
from alert_engine.utils.text import normalize_terms, slugify

from .location import LocationMatcher
from .models import (
    FEATURE_TAG_PREFIX,
    TAG_BATHROOMS,
    TAG_BEDROOMS,
    TAG_FEATURES,
    TAG_GARAGES,
    TAG_LOCATION,
    TAG_PRICE_MAX,
    TAG_PRICE_MIN,
    TAG_PROPERTY_TYPE,
    TAG_SQUARE_FEET_MAX,
    TAG_SQUARE_FEET_MIN,
    MatchResult,
    is_feature_detail_tag,
)

WEIGHT_PRICE_MIN = 0.3
WEIGHT_PRICE_MAX = 0.3
WEIGHT_ROOMS = 0.2
WEIGHT_LOCATION = 0.3
WEIGHT_PROPERTY_TYPE = 0.2
WEIGHT_SQUARE_FEET = 0.1
WEIGHT_FEATURES = 0.2

STRONG_MATCH_THRESHOLD = 0.6
BROAD_MATCH_THRESHOLD = 0.4
BROAD_MATCH_MIN_CRITERIA = 2

SCORE_PRECISION = 6


def accept_match(total_criteria: int, raw_score: float, matched_count: int) -> bool:
    """Dual-threshold acceptance rule.

    A buyer with no stated criteria matches everything. Otherwise the weighted
    sum must reach 0.6, or reach 0.4 across at least two matched criteria.
    """
    if total_criteria == 0:
        return True
    score = round(raw_score, SCORE_PRECISION)
    if score >= STRONG_MATCH_THRESHOLD:
        return True
    return matched_count >= BROAD_MATCH_MIN_CRITERIA and score >= BROAD_MATCH_THRESHOLD


class MatchScorer:
    """Scores properties against normalized buyer criteria.

    Stateless apart from its location matcher; one instance is shared by every
    worker in a run.
    """

    def __init__(
        self,
        location_matcher: Optional[LocationMatcher] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.location_matcher = location_matcher or LocationMatcher()
        self.logger = logger_instance or get_logger(__name__, component="matching")

    def evaluate(self, prop: Property, criteria: BuyerCriteria, buyer_id: str = "") -> MatchResult:
        """Evaluate one property against one buyer's criteria.

        Criteria the buyer did not specify are skipped and do not count toward
        the total. Room and floor-area criteria are skipped when the property
        does not state the value. A property without a positive price never
        matches.

        Args:
            prop: Property being published
            criteria: Normalized buyer criteria
            buyer_id: Buyer identifier copied into the result

        Returns:
            MatchResult with scores, matched tags and the acceptance decision
        """
        if prop.price <= 0:
            self.logger.debug(
                "Property without a positive price is not scored",
                extra={
                    "event": "match.skipped",
                    "reason": "invalid_price",
                    "buyer_id": buyer_id,
                    "property_id": prop.id,
                },
            )
            return MatchResult(
                buyer_id=buyer_id,
                property_id=prop.id,
                normalized_score=0.0,
                raw_score=0.0,
                total_criteria=0,
                is_match=False,
            )

        total = 0
        raw = 0.0
        matched: List[str] = []

        # Price bounds form one criterion with two weighted halves
        if criteria.min_budget is not None or criteria.max_budget is not None:
            total += 1
            if criteria.min_budget is not None and prop.price >= criteria.min_budget:
                raw += WEIGHT_PRICE_MIN
                matched.append(TAG_PRICE_MIN)
            if criteria.max_budget is not None and prop.price <= criteria.max_budget:
                raw += WEIGHT_PRICE_MAX
                matched.append(TAG_PRICE_MAX)

        for tag, minimum, actual in (
            (TAG_BEDROOMS, criteria.min_bedrooms, prop.bedrooms),
            (TAG_BATHROOMS, criteria.min_bathrooms, prop.bathrooms),
            (TAG_GARAGES, criteria.min_garages, prop.garages),
        ):
            if minimum is None or actual is None:
                continue
            total += 1
            if actual >= minimum:
                raw += WEIGHT_ROOMS
                matched.append(tag)

        if criteria.preferred_areas:
            total += 1
            if self.location_matcher.any_matches(
                criteria.preferred_areas, prop.city, prop.state, prop.address
            ):
                raw += WEIGHT_LOCATION
                matched.append(TAG_LOCATION)

        if criteria.preferred_property_types:
            total += 1
            if prop.property_type.strip().lower() in criteria.preferred_property_types:
                raw += WEIGHT_PROPERTY_TYPE
                matched.append(TAG_PROPERTY_TYPE)

        if prop.square_feet is not None:
            if criteria.min_square_feet is not None:
                total += 1
                if prop.square_feet >= criteria.min_square_feet:
                    raw += WEIGHT_SQUARE_FEET
                    matched.append(TAG_SQUARE_FEET_MIN)
            if criteria.max_square_feet is not None:
                total += 1
                if prop.square_feet <= criteria.max_square_feet:
                    raw += WEIGHT_SQUARE_FEET
                    matched.append(TAG_SQUARE_FEET_MAX)

        if criteria.preferred_features:
            total += 1
            offered = set(normalize_terms(prop.features))
            hits = sorted(offered & criteria.preferred_features)
            if hits:
                raw += WEIGHT_FEATURES * len(hits) / len(criteria.preferred_features)
                matched.append(TAG_FEATURES)
                matched.extend(f"{FEATURE_TAG_PREFIX}{slugify(hit)}" for hit in hits)

        raw = round(raw, SCORE_PRECISION)
        normalized = min(1.0, max(0.0, raw / total)) if total else 0.0
        matched_count = sum(1 for tag in matched if not is_feature_detail_tag(tag))
        is_match = accept_match(total, raw, matched_count)

        result = MatchResult(
            buyer_id=buyer_id,
            property_id=prop.id,
            normalized_score=round(normalized, SCORE_PRECISION),
            raw_score=raw,
            total_criteria=total,
            matched_criteria=tuple(matched),
            is_match=is_match,
        )

        self.logger.debug(
            "Match evaluated",
            extra={
                "event": "match.evaluated",
                "buyer_id": buyer_id,
                "property_id": prop.id,
                "raw_score": result.raw_score,
                "normalized_score": result.normalized_score,
                "total_criteria": total,
                "matched_criteria": result.matched_criteria,
                "is_match": is_match,
            },
        )
        return result
