"""Alert dispatch for one (buyer, property) pair.

AlertDispatcher coordinates duplicate suppression, email delivery, alert
record persistence and the follow-up in-app notification:

1. Claim the pair in-process, then ask the alert store whether an active
   alert already exists (duplicate -> no email)
2. Build the property view and pick the template for the alert class
3. Send the email; on failure persist a failed record and raise
   DispatchFailure
4. On success persist a sent record, then create the in-app notification

Delivery is attempted once per call. Retrying is the caller's decision.
"""

import logging
import threading
from typing import Callable, Optional, Set, Tuple

from alert_engine.adapters.base import AlertRecordStore, Notifier
from alert_engine.domain.models import AlertClass, AlertRecord, AlertStatus, BuyerCandidate, Property
from alert_engine.logging import get_logger
from alert_engine.matching.models import MatchResult

from .models import (
    STATUS_DUPLICATE,
    STATUS_FAILED,
    STATUS_SENT,
    DispatchFailure,
    DispatchOutcome,
)
from .payloads import IN_APP_KIND, build_property_view, in_app_message, template_for

DEFAULT_PROPERTY_URL = "https://pickfirst.com.au/property/{property_id}"


class AlertDispatcher:
    """Sends at most one alert per (buyer, property) pair.

    Within one process the claim set makes the check-and-send atomic per
    pair; across processes the alert store check is advisory only.
    """

    def __init__(
        self,
        notifier: Notifier,
        alert_store: AlertRecordStore,
        property_url: Optional[Callable[[str], str]] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize the dispatcher.

        Args:
            notifier: Email and in-app delivery channels
            alert_store: Alert record store used for duplicate suppression
            property_url: Builds the public property link from a property id
                (defaults to the production URL pattern)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.notifier = notifier
        self.alert_store = alert_store
        self.property_url = property_url or DEFAULT_PROPERTY_URL.format
        self.logger = logger_instance or get_logger(__name__, component="dispatch")
        self._lock = threading.Lock()
        self._in_flight: Set[Tuple[str, str]] = set()

    def dispatch(
        self,
        candidate: BuyerCandidate,
        prop: Property,
        alert_class: AlertClass,
        match_result: MatchResult,
    ) -> DispatchOutcome:
        """Dispatch one alert.

        Returns:
            DispatchOutcome with status "sent" or "duplicate"

        Raises:
            DispatchFailure: If the email could not be delivered
        """
        alert_class = AlertClass(alert_class)
        pair = (candidate.buyer_id, prop.id)
        template = template_for(alert_class)

        with self._lock:
            if pair in self._in_flight:
                return self._duplicate(candidate, prop, template, "in_flight")
            self._in_flight.add(pair)

        try:
            if self.alert_store.has_active_alert(candidate.buyer_id, prop.id):
                return self._duplicate(candidate, prop, template, "already_sent")
            return self._send(candidate, prop, alert_class, template, match_result)
        finally:
            with self._lock:
                self._in_flight.discard(pair)

    def _send(
        self,
        candidate: BuyerCandidate,
        prop: Property,
        alert_class: AlertClass,
        template: str,
        match_result: MatchResult,
    ) -> DispatchOutcome:
        link = self.property_url(property_id=prop.id)
        view = build_property_view(prop, match_result, link)

        error: Optional[str] = None
        try:
            delivered = self.notifier.send_alert_email(
                candidate.email, candidate.full_name, alert_class, view
            )
            if not delivered:
                error = "Email delivery failed"
        except Exception as e:
            delivered = False
            error = f"{type(e).__name__}: {e}"

        if not delivered:
            outcome = DispatchOutcome(
                buyer_id=candidate.buyer_id,
                property_id=prop.id,
                status=STATUS_FAILED,
                email_template=template,
                error=error,
            )
            outcome.alert_record = self._record(candidate, prop, alert_class, template, AlertStatus.FAILED)
            self.logger.warning(
                f"Alert dispatch failed for buyer {candidate.buyer_id}: {error}",
                extra={
                    "event": "dispatch.failed",
                    "buyer_id": candidate.buyer_id,
                    "property_id": prop.id,
                    "template": template,
                },
            )
            raise DispatchFailure(error, outcome)

        outcome = DispatchOutcome(
            buyer_id=candidate.buyer_id,
            property_id=prop.id,
            status=STATUS_SENT,
            email_template=template,
        )
        outcome.alert_record = self._record(candidate, prop, alert_class, template, AlertStatus.SENT)

        title, body = in_app_message(alert_class, view)
        try:
            outcome.in_app_created = bool(
                self.notifier.create_in_app_notification(
                    candidate.buyer_id,
                    IN_APP_KIND,
                    title,
                    body,
                    link=link,
                    metadata={
                        "property_id": prop.id,
                        "alert_type": alert_class.value,
                        "match_score": match_result.normalized_score,
                    },
                )
            )
        except Exception as e:
            self.logger.warning(
                f"In-app notification failed for buyer {candidate.buyer_id}: {e}",
                extra={"event": "notification.in_app_failed", "buyer_id": candidate.buyer_id},
            )

        self.logger.info(
            f"Alert sent to buyer {candidate.buyer_id} for property {prop.id}",
            extra={
                "event": "dispatch.sent",
                "buyer_id": candidate.buyer_id,
                "property_id": prop.id,
                "template": template,
                "match_score": match_result.normalized_score,
            },
        )
        return outcome

    def _record(
        self,
        candidate: BuyerCandidate,
        prop: Property,
        alert_class: AlertClass,
        template: str,
        status: AlertStatus,
    ) -> Optional[AlertRecord]:
        record = AlertRecord(
            buyer_id=candidate.buyer_id,
            property_id=prop.id,
            alert_type=alert_class,
            status=status,
            email_template=template,
        )
        try:
            return self.alert_store.record_alert(record)
        except Exception as e:
            self.logger.error(
                f"Failed to record {status.value} alert for buyer {candidate.buyer_id}: {e}",
                exc_info=True,
                extra={
                    "event": "dispatch.record_failed",
                    "buyer_id": candidate.buyer_id,
                    "property_id": prop.id,
                    "error_type": type(e).__name__,
                },
            )
            return None

    def _duplicate(
        self, candidate: BuyerCandidate, prop: Property, template: str, reason: str
    ) -> DispatchOutcome:
        self.logger.info(
            f"Skipping alert for buyer {candidate.buyer_id} - already alerted",
            extra={
                "event": "dispatch.duplicate",
                "buyer_id": candidate.buyer_id,
                "property_id": prop.id,
                "reason": reason,
            },
        )
        return DispatchOutcome(
            buyer_id=candidate.buyer_id,
            property_id=prop.id,
            status=STATUS_DUPLICATE,
            email_template=template,
        )
