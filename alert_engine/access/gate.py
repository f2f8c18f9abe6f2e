"""Subscription-tier eligibility checks for alert classes.

On-market alerts are open to every tier; off-market alerts require premium.
Every decision is written to the audit sink, and nothing here raises: a
missing or unreadable profile is a denial.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from alert_engine.adapters.base import AuditSink, ProfileStore
from alert_engine.domain.models import AlertClass, SubscriptionTier
from alert_engine.logging import get_logger

REASON_OFF_MARKET_REQUIRES_PREMIUM = "off_market_requires_premium"
REASON_INSUFFICIENT_TIER = "insufficient_subscription_tier"


@dataclass(frozen=True)
class AccessDecision:
    """Outcome of one eligibility check.

    Attributes:
        buyer_id: Buyer that was checked
        alert_class: Alert class requested
        allowed: Whether the buyer may receive the alert
        reason: Denial reason, None when allowed
        tier: Tier the decision was based on, None if it could not be read
    """

    buyer_id: str
    alert_class: AlertClass
    allowed: bool
    reason: Optional[str] = None
    tier: Optional[SubscriptionTier] = None


def tier_allows(tier: SubscriptionTier, alert_class: AlertClass) -> bool:
    if alert_class is AlertClass.OFF_MARKET:
        return tier is SubscriptionTier.PREMIUM
    return True


class EligibilityGate:
    """Decides whether a buyer's subscription tier permits an alert class."""

    def __init__(
        self,
        profile_store: ProfileStore,
        audit_sink: AuditSink,
        logger_instance: Optional[logging.Logger] = None,
    ):
        self.profile_store = profile_store
        self.audit_sink = audit_sink
        self.logger = logger_instance or get_logger(__name__, component="access")

    def check_access(
        self, buyer_id: str, alert_class: AlertClass, property_id: Optional[str] = None
    ) -> bool:
        return self.evaluate(buyer_id, alert_class, property_id).allowed

    def evaluate(
        self, buyer_id: str, alert_class: AlertClass, property_id: Optional[str] = None
    ) -> AccessDecision:
        """Check access and audit the decision.

        Args:
            buyer_id: Buyer to check
            alert_class: on_market or off_market
            property_id: Property the alert is for (audit context only)

        Returns:
            AccessDecision; lookup failures produce a denial
        """
        decision = self._decide(buyer_id, alert_class)

        self.logger.info(
            "Access decision",
            extra={
                "event": "access.decision",
                "buyer_id": buyer_id,
                "alert_class": alert_class,
                "allowed": decision.allowed,
                "reason": decision.reason,
                "tier": decision.tier,
            },
        )

        try:
            self.audit_sink.record_access_decision(decision, property_id)
        except Exception as e:
            self.logger.warning(
                f"Failed to audit access decision: {e}",
                extra={
                    "event": "audit.write_failed",
                    "audit_action": "access_decision",
                    "buyer_id": buyer_id,
                    "error_type": type(e).__name__,
                },
            )

        return decision

    def _decide(self, buyer_id: str, alert_class: AlertClass) -> AccessDecision:
        try:
            raw_tier = self.profile_store.get_subscription_tier(buyer_id)
        except Exception as e:
            self.logger.warning(
                f"Subscription tier lookup failed for buyer {buyer_id}: {e}",
                extra={
                    "event": "access.lookup_failed",
                    "buyer_id": buyer_id,
                    "error_type": type(e).__name__,
                },
            )
            return AccessDecision(buyer_id, alert_class, False, REASON_INSUFFICIENT_TIER)

        if raw_tier is None:
            return AccessDecision(buyer_id, alert_class, False, REASON_INSUFFICIENT_TIER)

        tier = SubscriptionTier.parse(raw_tier)
        if tier_allows(tier, alert_class):
            return AccessDecision(buyer_id, alert_class, True, None, tier)

        reason = (
            REASON_OFF_MARKET_REQUIRES_PREMIUM
            if alert_class is AlertClass.OFF_MARKET
            else REASON_INSUFFICIENT_TIER
        )
        return AccessDecision(buyer_id, alert_class, False, reason, tier)
