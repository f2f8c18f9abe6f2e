"""Subscription-tier access gating."""

from .gate import (
    REASON_INSUFFICIENT_TIER,
    REASON_OFF_MARKET_REQUIRES_PREMIUM,
    AccessDecision,
    EligibilityGate,
    tier_allows,
)

__all__ = [
    "AccessDecision",
    "EligibilityGate",
    "tier_allows",
    "REASON_INSUFFICIENT_TIER",
    "REASON_OFF_MARKET_REQUIRES_PREMIUM",
]
