"""Core domain models for properties, buyers and alerts.

This module defines the data structures shared across the engine:
- Property: an approved listing read from the backend
- RawPreferences: a buyer's stored preference record in its legacy shape
- BuyerCandidate: a buyer with alerts enabled, as returned by a CandidateSource
- AlertRecord: tracking for dispatched (or failed) alerts
- AuditEvent / InAppNotification: rows written by the SQL sinks
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, ValidationError, field_validator

from alert_engine.utils.timestamps import ensure_utc, utc_now


class ListingSource(str, Enum):
    """Where a listing came from; decides the alert class."""

    PLATFORM = "platform"
    AGENT_POSTED = "agent_posted"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ListingSource":
        """Map a raw backend value onto a listing source.

        'agent-posted', 'agent_posted' and 'agent' are agent listings; anything
        else, including a missing value, is platform-sourced.
        """
        if value is None:
            return cls.PLATFORM
        normalized = str(value).strip().lower().replace("-", "_")
        if normalized in ("agent_posted", "agent"):
            return cls.AGENT_POSTED
        return cls.PLATFORM


class AlertClass(str, Enum):
    """Alert classes; off-market alerts are restricted to premium buyers."""

    ON_MARKET = "on_market"
    OFF_MARKET = "off_market"


class AlertStatus(str, Enum):
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class SubscriptionTier(str, Enum):
    """Buyer subscription tiers."""

    FREE = "free"
    BASIC = "basic"
    PREMIUM = "premium"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SubscriptionTier":
        """Unknown or missing tiers are treated as free."""
        if value is None:
            return cls.FREE
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.FREE


class Property(BaseModel):
    """Approved property listing, read-only to the engine."""

    id: str = Field(..., description="Property identifier")
    title: str = Field("", description="Listing title")
    price: float = Field(..., description="Asking price")
    city: str = Field("", description="City or suburb")
    state: str = Field("", description="State abbreviation")
    address: Optional[str] = Field(None, description="Street address")
    property_type: str = Field("", description="House, apartment, townhouse, ...")
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    garages: Optional[int] = Field(None, ge=0)
    square_feet: Optional[float] = Field(None, ge=0)
    features: Optional[List[str]] = Field(None, description="Listed features, if any")
    images: List[str] = Field(default_factory=list, description="Image URLs")
    listing_source: ListingSource = Field(ListingSource.PLATFORM)

    @field_validator("id", mode="before")
    @classmethod
    def validate_id(cls, v: Any) -> str:
        text = str(v).strip()
        if not text:
            raise ValueError("Property id cannot be empty")
        return text

    @field_validator("title", "city", "state", "property_type", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Missing text columns become empty strings."""
        return "" if v is None else str(v).strip()

    @field_validator("listing_source", mode="before")
    @classmethod
    def parse_listing_source(cls, v: Any) -> ListingSource:
        if isinstance(v, ListingSource):
            return v
        return ListingSource.parse(v)

    @field_validator("images", mode="before")
    @classmethod
    def default_images(cls, v: Any) -> List[str]:
        return [] if v is None else v

    @property
    def alert_class(self) -> AlertClass:
        """Agent-posted listings are off-market; everything else is on-market."""
        if self.listing_source is ListingSource.AGENT_POSTED:
            return AlertClass.OFF_MARKET
        return AlertClass.ON_MARKET

    @property
    def location_label(self) -> str:
        return f"{self.city}, {self.state}"

    model_config = {"json_schema_extra": {"example": {
        "id": "prop-123",
        "title": "Family home near the lakes",
        "price": 500000,
        "city": "Mawson Lakes",
        "state": "SA",
        "address": "12 Main Street",
        "property_type": "house",
        "bedrooms": 3,
        "bathrooms": 2,
        "garages": 1,
        "square_feet": 180,
        "features": ["pool", "solar panels"],
        "images": ["https://example.com/1.jpg"],
        "listing_source": "platform",
    }}}


class RawPreferences(BaseModel):
    """A buyer's stored preference record in its legacy shape.

    ``preferred_areas`` mixes free-text location fragments with encoded
    numeric facts such as ``"bedrooms:3"``. Only the normalization layer
    decodes it.
    """

    budget_range: Optional[Union[str, int, float]] = None
    preferred_areas: Optional[Union[List[Any], str]] = None
    property_type_preferences: Optional[Union[List[Any], str]] = None
    preferred_features: Optional[Union[List[Any], str]] = None
    preferred_square_feet_min: Optional[float] = None
    preferred_square_feet_max: Optional[float] = None

    model_config = {"extra": "ignore"}


class BuyerCandidate(BaseModel):
    """A buyer with alerts enabled and a usable email address.

    A preference record that does not fit RawPreferences is kept as the raw
    mapping so the normalizer can report it against this buyer.
    """

    buyer_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    full_name: str = Field("User")
    subscription_tier: SubscriptionTier = Field(SubscriptionTier.FREE)
    raw_preferences: Optional[Union[RawPreferences, Dict[str, Any]]] = None

    @field_validator("buyer_id", "email", mode="before")
    @classmethod
    def coerce_identity(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("full_name", mode="before")
    @classmethod
    def default_name(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            return "User"
        return str(v).strip()

    @field_validator("subscription_tier", mode="before")
    @classmethod
    def parse_tier(cls, v: Any) -> SubscriptionTier:
        if isinstance(v, SubscriptionTier):
            return v
        return SubscriptionTier.parse(v)

    @field_validator("raw_preferences", mode="before")
    @classmethod
    def parse_preferences(cls, v: Any) -> Any:
        if not isinstance(v, dict):
            return v
        try:
            return RawPreferences.model_validate(v)
        except ValidationError:
            return v


class AlertRecord(BaseModel):
    """Record of one alert dispatch attempt for a (buyer, property) pair."""

    buyer_id: str = Field(..., description="Buyer the alert was addressed to")
    property_id: str = Field(..., description="Property the alert is about")
    alert_type: AlertClass = Field(..., description="on_market or off_market")
    status: AlertStatus = Field(..., description="sent, delivered or failed")
    email_template: str = Field(..., description="Template used for the email")
    sent_at: datetime = Field(default_factory=utc_now, description="When recorded (UTC)")

    @field_validator("sent_at")
    @classmethod
    def validate_sent_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @property
    def is_active(self) -> bool:
        """Non-failed records suppress further alerts for the same pair."""
        return self.status is not AlertStatus.FAILED


class AuditEvent(BaseModel):
    """One append-only audit log entry."""

    action: str = Field(..., min_length=1, description="e.g. feature_access_granted, alert_sent")
    user_id: Optional[str] = Field(None, description="Buyer the event concerns, if any")
    property_id: Optional[str] = Field(None)
    success: bool = Field(True)
    details: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class InAppNotification(BaseModel):
    """A notification shown inside the buyer's account."""

    user_id: str = Field(..., min_length=1)
    kind: str = Field(..., min_length=1, description="Notification type, e.g. property_alert")
    title: str
    body: str
    link: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)
    read: bool = False
    created_at: datetime = Field(default_factory=utc_now)

    @field_validator("created_at")
    @classmethod
    def validate_created_at(cls, v: datetime) -> datetime:
        return ensure_utc(v)
