"""Alert content: template selection, subjects and the property view.

The property view is the data handed to the email channel; it mirrors the
fields the alert templates render.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from alert_engine.domain.models import AlertClass, Property
from alert_engine.matching.models import MatchResult
from alert_engine.utils.text import humanize_slug

TEMPLATE_ON_MARKET = "propertyAlert"
TEMPLATE_OFF_MARKET = "offMarketPropertyAlert"

IN_APP_KIND = "property_alert"


@dataclass(frozen=True)
class PropertyView:
    """Display data for one alert."""

    property_id: str
    title: str
    price: float
    location: str
    property_type: str
    bedrooms: int
    bathrooms: int
    property_url: str
    is_off_market: bool
    image: Optional[str] = None
    matching_features: Tuple[str, ...] = field(default_factory=tuple)
    match_score: float = 0.0

    @property
    def formatted_price(self) -> str:
        return f"${self.price:,.0f}"

    def to_template_context(self, buyer_name: str) -> Dict[str, Any]:
        """Template variables, including the buyer's display name."""
        context = asdict(self)
        context["matching_features"] = list(self.matching_features)
        context["formatted_price"] = self.formatted_price
        context["name"] = buyer_name
        return context


def template_for(alert_class: AlertClass) -> str:
    if AlertClass(alert_class) is AlertClass.OFF_MARKET:
        return TEMPLATE_OFF_MARKET
    return TEMPLATE_ON_MARKET


def subject_for(alert_class: AlertClass, title: str) -> str:
    if AlertClass(alert_class) is AlertClass.OFF_MARKET:
        return f"🔐 Exclusive Off-Market Property: {title}"
    return f"🏠 New Property Alert: {title}"


def matching_feature_names(match: MatchResult) -> List[str]:
    """Display names of the individually matched features ("swimming_pool" -> "Swimming pool")."""
    return [humanize_slug(slug) for slug in match.matched_features]


def build_property_view(
    prop: Property,
    match: MatchResult,
    property_url: str,
) -> PropertyView:
    """Assemble the display data for one (buyer, property) alert.

    Args:
        prop: Property being alerted
        match: Match result for the buyer (source of matched features and score)
        property_url: Public link to the property page
    """
    return PropertyView(
        property_id=prop.id,
        title=prop.title,
        price=prop.price,
        location=prop.location_label,
        property_type=prop.property_type,
        bedrooms=prop.bedrooms or 0,
        bathrooms=prop.bathrooms or 0,
        property_url=property_url,
        is_off_market=prop.alert_class is AlertClass.OFF_MARKET,
        image=prop.images[0] if prop.images else None,
        matching_features=tuple(matching_feature_names(match)),
        match_score=match.normalized_score,
    )


def in_app_message(alert_class: AlertClass, view: PropertyView) -> Tuple[str, str]:
    """Title and body of the in-app notification for an alert."""
    if AlertClass(alert_class) is AlertClass.OFF_MARKET:
        title = "Exclusive off-market property"
    else:
        title = "New property match"
    body = f"{view.title} in {view.location} for {view.formatted_price} matches your preferences."
    return title, body
