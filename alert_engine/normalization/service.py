"""Preference normalization: legacy stored preferences to BuyerCriteria.

This module implements the normalization logic that:
1. Splits the stored budget range string into min/max bounds
2. Partitions preferred areas into location fragments and encoded room facts
   (``bedrooms:3``, ``bathrooms:2``, ``garages:1``)
3. Lowercases and trims every free-text comparison field
4. Validates floor-area bounds

The encoded ``key:value`` representation never leaves this module.
"""

import logging
import re
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError

from alert_engine.domain.models import RawPreferences
from alert_engine.logging import get_logger
from alert_engine.utils.text import normalize_terms

from .exceptions import PreferenceNormalizationError
from .models import BuyerCriteria

DEFAULT_MIN_BUDGET = 0
DEFAULT_MAX_BUDGET = 1_000_000

ENCODED_FACT_PREFIXES = ("bedrooms", "bathrooms", "garages")

_DIGITS_RE = re.compile(r"[0-9]+")
_BUDGET_NOISE_RE = re.compile(r"[\s,$]")


class PreferenceNormalizer:
    """Turns a buyer's stored preference record into BuyerCriteria.

    Pure apart from debug logging; safe to share between worker threads.
    """

    def __init__(
        self,
        default_min_budget: int = DEFAULT_MIN_BUDGET,
        default_max_budget: int = DEFAULT_MAX_BUDGET,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.default_min_budget = default_min_budget
        self.default_max_budget = default_max_budget
        self.logger = logger_instance or get_logger(__name__, component="normalization")

    def normalize(self, raw_preferences: Union[RawPreferences, Dict[str, Any]]) -> BuyerCriteria:
        """Build canonical criteria from a stored preference record.

        Args:
            raw_preferences: RawPreferences model or the raw mapping from the store

        Returns:
            Immutable BuyerCriteria

        Raises:
            PreferenceNormalizationError: If an encoded fact or a floor-area
                bound is malformed
        """
        prefs = self._coerce(raw_preferences)

        min_budget, max_budget = self.parse_budget_range(prefs.budget_range)
        areas, facts = self.partition_areas(prefs.preferred_areas)
        min_sqft, max_sqft = self._square_feet_bounds(
            prefs.preferred_square_feet_min, prefs.preferred_square_feet_max
        )

        criteria = BuyerCriteria(
            min_budget=min_budget,
            max_budget=max_budget,
            min_bedrooms=facts.get("bedrooms"),
            min_bathrooms=facts.get("bathrooms"),
            min_garages=facts.get("garages"),
            preferred_areas=tuple(areas),
            preferred_property_types=frozenset(
                normalize_terms(_as_list(prefs.property_type_preferences))
            ),
            min_square_feet=min_sqft,
            max_square_feet=max_sqft,
            preferred_features=frozenset(normalize_terms(_as_list(prefs.preferred_features))),
        )

        self.logger.debug(
            "Normalized preferences",
            extra={
                "event": "normalization.preferences.normalized",
                "area_count": len(criteria.preferred_areas),
                "has_room_facts": bool(facts),
            },
        )
        return criteria

    def parse_budget_range(self, budget_range: Optional[Any]) -> Tuple[int, int]:
        """Split ``"150000-400000"`` on the first hyphen.

        Each side falls back to its default when missing or unparseable.
        """
        if budget_range is None:
            return self.default_min_budget, self.default_max_budget

        text = str(budget_range)
        min_part, _, max_part = text.partition("-")
        return (
            _parse_budget_side(min_part, self.default_min_budget),
            _parse_budget_side(max_part, self.default_max_budget),
        )

    @staticmethod
    def partition_areas(preferred_areas: Optional[Any]) -> Tuple[List[str], Dict[str, int]]:
        """Separate location fragments from encoded ``key:value`` room facts.

        Prefix matching is case-insensitive and the first occurrence of each
        fact wins. Later duplicates are dropped from the fragments as well.

        Returns:
            (location fragments, {fact name: value})

        Raises:
            PreferenceNormalizationError: If an encoded value is not a
                non-negative integer
        """
        fragments: List[str] = []
        facts: Dict[str, int] = {}

        for entry in _as_list(preferred_areas):
            text = str(entry).strip()
            key, sep, value = text.partition(":")
            fact = key.strip().lower()
            if sep and fact in ENCODED_FACT_PREFIXES:
                if fact not in facts:
                    facts[fact] = _parse_fact(fact, value)
                continue
            fragments.append(text)

        return normalize_terms(fragments), facts

    @staticmethod
    def _square_feet_bounds(
        minimum: Optional[float], maximum: Optional[float]
    ) -> Tuple[Optional[float], Optional[float]]:
        bounds = (("preferred_square_feet_min", minimum), ("preferred_square_feet_max", maximum))
        for name, value in bounds:
            if value is not None and value < 0:
                raise PreferenceNormalizationError(
                    f"{name} cannot be negative: {value}", field=name, value=value
                )
        if minimum is not None and maximum is not None and minimum > maximum:
            raise PreferenceNormalizationError(
                f"preferred_square_feet_min ({minimum}) exceeds preferred_square_feet_max ({maximum})",
                field="preferred_square_feet_min",
                value=minimum,
            )
        return minimum, maximum

    @staticmethod
    def _coerce(raw_preferences: Union[RawPreferences, Dict[str, Any]]) -> RawPreferences:
        if isinstance(raw_preferences, RawPreferences):
            return raw_preferences
        if not isinstance(raw_preferences, dict):
            raise PreferenceNormalizationError(
                f"Preferences must be a mapping, got {type(raw_preferences).__name__}",
                field="preferences",
                value=raw_preferences,
            )
        try:
            return RawPreferences.model_validate(raw_preferences)
        except ValidationError as e:
            raise PreferenceNormalizationError(
                f"Malformed preference record: {e.error_count()} invalid field(s)",
                field="preferences",
                value=raw_preferences,
            ) from e


def _as_list(value: Optional[Any]) -> List[Any]:
    """A bare string is treated as a one-element list."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [v for v in value if v is not None]
    return [value]


def _parse_budget_side(text: str, default: int) -> int:
    match = _DIGITS_RE.match(_BUDGET_NOISE_RE.sub("", text))
    if not match:
        return default
    return int(match.group())


def _parse_fact(fact: str, value: str) -> int:
    stripped = value.strip()
    if not _DIGITS_RE.fullmatch(stripped):
        raise PreferenceNormalizationError(
            f"Encoded preference '{fact}:{value}' is not a non-negative integer",
            field=fact,
            value=value,
        )
    return int(stripped)
