"""Canonical buyer criteria produced by the normalization layer."""

from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple


@dataclass(frozen=True)
class BuyerCriteria:
    """Clean, typed matching criteria for one buyer.

    Built fresh for every evaluation and never mutated. ``None`` means the
    buyer did not state that criterion; ``0`` is a real threshold.

    Attributes:
        min_budget: Lowest acceptable price
        max_budget: Highest acceptable price
        min_bedrooms: Minimum bedroom count
        min_bathrooms: Minimum bathroom count
        min_garages: Minimum garage count
        preferred_areas: Lowercased location fragments in stored order
        preferred_property_types: Lowercased property types
        min_square_feet: Minimum floor area
        max_square_feet: Maximum floor area
        preferred_features: Lowercased feature names
    """

    min_budget: Optional[int] = None
    max_budget: Optional[int] = None
    min_bedrooms: Optional[int] = None
    min_bathrooms: Optional[int] = None
    min_garages: Optional[int] = None
    preferred_areas: Tuple[str, ...] = field(default_factory=tuple)
    preferred_property_types: FrozenSet[str] = field(default_factory=frozenset)
    min_square_feet: Optional[float] = None
    max_square_feet: Optional[float] = None
    preferred_features: FrozenSet[str] = field(default_factory=frozenset)
