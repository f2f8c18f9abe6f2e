"""Domain models for the property alert engine."""

from .models import (
    AlertClass,
    AlertRecord,
    AlertStatus,
    AuditEvent,
    BuyerCandidate,
    InAppNotification,
    ListingSource,
    Property,
    RawPreferences,
    SubscriptionTier,
)

__all__ = [
    "AlertClass",
    "AlertRecord",
    "AlertStatus",
    "AuditEvent",
    "BuyerCandidate",
    "InAppNotification",
    "ListingSource",
    "Property",
    "RawPreferences",
    "SubscriptionTier",
]
