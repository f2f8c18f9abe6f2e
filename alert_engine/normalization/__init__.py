"""Preference normalization for buyer criteria."""

from .exceptions import PreferenceNormalizationError
from .models import BuyerCriteria
from .service import PreferenceNormalizer

__all__ = ["BuyerCriteria", "PreferenceNormalizer", "PreferenceNormalizationError"]
