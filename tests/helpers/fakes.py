"""In-memory fakes of the engine's external interfaces.

Used by unit tests and by the SQLite-backed integration tests for the parts
that would otherwise reach the hosted backend or an SMTP server.
"""

import threading
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from alert_engine.adapters.base import (
    AlertRecordStore,
    AuditSink,
    CandidateSource,
    Notifier,
    ProfileStore,
    PropertyLookup,
)
from alert_engine.domain.models import AlertRecord, AlertStatus, BuyerCandidate, Property


def make_property(**overrides: Any) -> Property:
    """Approved on-market house in Mawson Lakes, SA unless overridden."""
    data = {
        "id": "prop-1",
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
    }
    data.update(overrides)
    return Property(**data)


def make_candidate(
    buyer_id: str = "buyer-1",
    tier: Optional[str] = "free",
    preferences: Optional[Dict[str, Any]] = None,
    **overrides: Any,
) -> BuyerCandidate:
    data = {
        "buyer_id": buyer_id,
        "email": f"{buyer_id}@example.com",
        "full_name": f"Buyer {buyer_id}",
        "subscription_tier": tier,
        "raw_preferences": preferences,
    }
    data.update(overrides)
    return BuyerCandidate(**data)


def load_fixture_marketplace(fixture_path: Path) -> Dict[str, Any]:
    """Load properties, buyers and tiers from a YAML fixture file.

    Returns:
        Dict with "properties" (id -> Property), "candidates" (list of
        BuyerCandidate) and "tiers" (buyer id -> raw tier string)

    Raises:
        FileNotFoundError: If fixture file doesn't exist
    """
    if not fixture_path.exists():
        raise FileNotFoundError(f"Fixture file not found: {fixture_path}")

    with open(fixture_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    properties = {str(p["id"]): Property(**p) for p in data.get("properties", [])}
    buyers = data.get("buyers", [])
    candidates = [BuyerCandidate(**b) for b in buyers]
    tiers = {str(b["buyer_id"]): b.get("subscription_tier") for b in buyers}
    return {"properties": properties, "candidates": candidates, "tiers": tiers}


class FakeCandidateSource(CandidateSource):
    def __init__(self, candidates: Iterable[BuyerCandidate] = (), error: Optional[Exception] = None):
        self.candidates = list(candidates)
        self.error = error
        self.calls = 0

    def list_eligible_buyers(self) -> List[BuyerCandidate]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.candidates)


class FakePropertyLookup(PropertyLookup):
    def __init__(self, properties: Iterable[Property] = (), error: Optional[Exception] = None):
        self.properties = {p.id: p for p in properties}
        self.error = error

    def get_approved_property(self, property_id: str) -> Optional[Property]:
        if self.error is not None:
            raise self.error
        return self.properties.get(property_id)


class FakeProfileStore(ProfileStore):
    """Tiers by buyer id; missing ids behave like a missing profile."""

    def __init__(self, tiers: Optional[Dict[str, Optional[str]]] = None, error: Optional[Exception] = None):
        self.tiers = dict(tiers or {})
        self.error = error
        self.lookups: List[str] = []

    def get_subscription_tier(self, buyer_id: str) -> Optional[str]:
        self.lookups.append(buyer_id)
        if self.error is not None:
            raise self.error
        return self.tiers.get(buyer_id)


class RecordingAuditSink(AuditSink):
    """Keeps every audit call; ``fail=True`` makes every call raise."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.decisions: List[Any] = []
        self.summaries: List[Any] = []
        self.alerts_sent: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def _check(self) -> None:
        if self.fail:
            raise RuntimeError("audit store unavailable")

    def record_access_decision(self, decision, property_id=None) -> None:
        self._check()
        with self._lock:
            self.decisions.append((decision, property_id))

    def record_run_summary(self, summary) -> None:
        self._check()
        self.summaries.append(summary)

    def record_alert_sent(self, buyer_id, property_id, alert_type, matched_criteria) -> None:
        self._check()
        self.alerts_sent.append(
            {
                "buyer_id": buyer_id,
                "property_id": property_id,
                "alert_type": alert_type,
                "matched_criteria": list(matched_criteria),
            }
        )


class RecordingNotifier(Notifier):
    """Captures emails and in-app notifications.

    Emails to addresses in ``failing_emails`` return False; addresses in
    ``raising_emails`` raise. ``fail_times`` limits how many times a failing
    address fails before it starts succeeding.
    """

    def __init__(
        self,
        failing_emails: Iterable[str] = (),
        raising_emails: Iterable[str] = (),
        fail_times: Optional[int] = None,
        in_app_error: Optional[Exception] = None,
    ):
        self.failing_emails: Set[str] = set(failing_emails)
        self.raising_emails: Set[str] = set(raising_emails)
        self.fail_times = fail_times
        self.in_app_error = in_app_error
        self.emails: List[Dict[str, Any]] = []
        self.in_app: List[Dict[str, Any]] = []
        self.attempts: Dict[str, int] = {}
        self._lock = threading.Lock()

    def send_alert_email(self, buyer_email, buyer_name, alert_class, property_view) -> bool:
        with self._lock:
            self.attempts[buyer_email] = self.attempts.get(buyer_email, 0) + 1
            attempt = self.attempts[buyer_email]
        still_failing = self.fail_times is None or attempt <= self.fail_times

        if buyer_email in self.raising_emails and still_failing:
            raise ConnectionError("smtp unreachable")
        if buyer_email in self.failing_emails and still_failing:
            return False

        with self._lock:
            self.emails.append(
                {
                    "email": buyer_email,
                    "name": buyer_name,
                    "alert_class": alert_class,
                    "view": property_view,
                }
            )
        return True

    def create_in_app_notification(self, buyer_id, kind, title, body, link=None, metadata=None) -> bool:
        if self.in_app_error is not None:
            raise self.in_app_error
        with self._lock:
            self.in_app.append(
                {
                    "buyer_id": buyer_id,
                    "kind": kind,
                    "title": title,
                    "body": body,
                    "link": link,
                    "metadata": metadata or {},
                }
            )
        return True


class InMemoryAlertStore(AlertRecordStore):
    def __init__(self, records: Iterable[AlertRecord] = (), record_error: Optional[Exception] = None):
        self.records: List[AlertRecord] = list(records)
        self.record_error = record_error
        self._lock = threading.Lock()

    def has_active_alert(self, buyer_id: str, property_id: str) -> bool:
        with self._lock:
            return any(
                r.buyer_id == buyer_id and r.property_id == property_id and r.is_active
                for r in self.records
            )

    def record_alert(self, record: AlertRecord) -> AlertRecord:
        if self.record_error is not None:
            raise self.record_error
        with self._lock:
            self.records.append(record)
        return record

    def with_status(self, status: AlertStatus) -> List[AlertRecord]:
        return [r for r in self.records if r.status is status]
