"""Result types and exceptions for alert dispatch."""

from dataclasses import dataclass
from typing import Optional

from alert_engine.domain.models import AlertRecord

STATUS_SENT = "sent"
STATUS_DUPLICATE = "duplicate"
STATUS_FAILED = "failed"


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Template rendering failed (missing template or variable)."""

    pass


class SMTPDeliveryError(NotificationError):
    """The SMTP server rejected the message or could not be reached."""

    pass


@dataclass
class DispatchOutcome:
    """Result of dispatching one alert to one buyer.

    Attributes:
        buyer_id: Buyer the alert was for
        property_id: Property the alert was about
        status: "sent", "duplicate" or "failed"
        email_template: Template selected for the alert class
        alert_record: Record persisted for this attempt, if any
        error: Error message when the dispatch failed
        in_app_created: Whether the in-app notification was stored
    """

    buyer_id: str
    property_id: str
    status: str
    email_template: str = ""
    alert_record: Optional[AlertRecord] = None
    error: Optional[str] = None
    in_app_created: bool = False

    def is_success(self) -> bool:
        return self.status == STATUS_SENT


class DispatchFailure(NotificationError):
    """The alert email could not be delivered to a buyer.

    Carries the failed outcome; the failed alert record has already been
    written (when the store allowed it).
    """

    def __init__(self, message: str, outcome: DispatchOutcome):
        super().__init__(message)
        self.outcome = outcome
