"""Narrow interfaces to the engine's external collaborators.

The run coordinator, eligibility gate and dispatcher depend only on these
abstract classes. Concrete implementations live in ``adapters.backend``,
``persistence.sinks`` and ``notifications.notifier``; tests use in-memory
fakes.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence

from alert_engine.domain.models import AlertClass, AlertRecord, BuyerCandidate, Property

if TYPE_CHECKING:
    from alert_engine.access.gate import AccessDecision
    from alert_engine.notifications.payloads import PropertyView
    from alert_engine.pipeline.models import RunSummary


class CandidateSource(ABC):
    """Buyers who have alerts enabled and valid email notification settings."""

    @abstractmethod
    def list_eligible_buyers(self) -> List[BuyerCandidate]:
        """Return every candidate buyer.

        Raises:
            Exception: Any failure; the coordinator fails the run
        """


class PropertyLookup(ABC):
    @abstractmethod
    def get_approved_property(self, property_id: str) -> Optional[Property]:
        """Return the property if it exists and is approved, else None."""


class ProfileStore(ABC):
    @abstractmethod
    def get_subscription_tier(self, buyer_id: str) -> Optional[str]:
        """Return the raw subscription tier string, or None if no profile exists."""


class AuditSink(ABC):
    """Append-only audit log.

    Implementations may raise ``AuditWriteFailure``; callers log and continue.
    """

    @abstractmethod
    def record_access_decision(
        self, decision: "AccessDecision", property_id: Optional[str] = None
    ) -> None:
        """Record one eligibility decision, allowed or denied."""

    @abstractmethod
    def record_run_summary(self, summary: "RunSummary") -> None:
        """Record the outcome of a completed run."""

    @abstractmethod
    def record_alert_sent(
        self,
        buyer_id: str,
        property_id: str,
        alert_type: AlertClass,
        matched_criteria: Sequence[str],
    ) -> None:
        """Record one dispatched alert and the criteria it matched."""


class Notifier(ABC):
    """Email and in-app delivery channels."""

    @abstractmethod
    def send_alert_email(
        self,
        buyer_email: str,
        buyer_name: str,
        alert_class: AlertClass,
        property_view: "PropertyView",
    ) -> bool:
        """Send the alert email. Returns False (or raises) on failure."""

    @abstractmethod
    def create_in_app_notification(
        self,
        buyer_id: str,
        kind: str,
        title: str,
        body: str,
        link: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Store an in-app notification. Best effort."""


class AlertRecordStore(ABC):
    """Durable alert records used for duplicate suppression."""

    @abstractmethod
    def has_active_alert(self, buyer_id: str, property_id: str) -> bool:
        """True if a non-failed alert already exists for the pair.

        Advisory only: two concurrent callers may both see False.
        """

    @abstractmethod
    def record_alert(self, record: AlertRecord) -> AlertRecord:
        """Append an alert record and return it as stored."""
