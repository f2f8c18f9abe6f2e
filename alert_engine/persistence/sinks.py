"""SQL-backed implementations of the AuditSink and AlertRecordStore interfaces.

Each call opens its own short session through ``get_session`` so concurrent
dispatch workers never share a session.
"""

from typing import TYPE_CHECKING, Callable, ContextManager, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from alert_engine.adapters.base import AlertRecordStore, AuditSink
from alert_engine.domain.models import AlertClass, AlertRecord, AuditEvent

from .database import get_session
from .exceptions import AuditWriteFailure, PersistenceError
from .repositories import ACTION_ALERT_SENT, AlertRepository, AuditRepository

if TYPE_CHECKING:
    from alert_engine.access.gate import AccessDecision
    from alert_engine.pipeline.models import RunSummary

ACTION_ACCESS_GRANTED = "feature_access_granted"
ACTION_ACCESS_DENIED = "feature_access_denied"
ACTION_RUN_SUMMARY = "process_new_property"
SYSTEM_USER = "system"
FEATURE_KEY = "property_alerts"

SessionScope = Callable[[], ContextManager[Session]]


class SqlAuditSink(AuditSink):
    """Writes audit events to the audit_events table.

    Any storage failure is raised as AuditWriteFailure.
    """

    def __init__(self, session_scope: SessionScope = get_session):
        self._session_scope = session_scope

    def record_access_decision(
        self, decision: "AccessDecision", property_id: Optional[str] = None
    ) -> None:
        self._append(
            AuditEvent(
                action=ACTION_ACCESS_GRANTED if decision.allowed else ACTION_ACCESS_DENIED,
                user_id=decision.buyer_id,
                property_id=property_id,
                success=decision.allowed,
                details={
                    "feature": FEATURE_KEY,
                    "alert_class": decision.alert_class.value,
                    "reason": decision.reason,
                    "tier": decision.tier.value if decision.tier else None,
                },
            )
        )

    def record_run_summary(self, summary: "RunSummary") -> None:
        self._append(
            AuditEvent(
                action=ACTION_RUN_SUMMARY,
                user_id=SYSTEM_USER,
                property_id=summary.property_id,
                success=summary.success,
                details=summary.to_audit_details(),
            )
        )

    def record_alert_sent(
        self,
        buyer_id: str,
        property_id: str,
        alert_type: AlertClass,
        matched_criteria: Sequence[str],
    ) -> None:
        self._append(
            AuditEvent(
                action=ACTION_ALERT_SENT,
                user_id=buyer_id,
                property_id=property_id,
                details={
                    "alert_type": AlertClass(alert_type).value,
                    "matched_criteria": list(matched_criteria),
                },
            )
        )

    def _append(self, event: AuditEvent) -> None:
        try:
            with self._session_scope() as session:
                AuditRepository(session).append(event)
        except (PersistenceError, SQLAlchemyError) as e:
            raise AuditWriteFailure(
                f"Failed to write audit event {event.action}: {e}", event.action
            ) from e


class SqlAlertRecordStore(AlertRecordStore):
    """Alert records in the property_alerts table.

    The active-alert check and the insert run in separate transactions, so
    duplicate suppression across processes is advisory.
    """

    def __init__(self, session_scope: SessionScope = get_session):
        self._session_scope = session_scope

    def has_active_alert(self, buyer_id: str, property_id: str) -> bool:
        with self._session_scope() as session:
            return AlertRepository(session).has_active_alert(buyer_id, property_id)

    def record_alert(self, record: AlertRecord) -> AlertRecord:
        with self._session_scope() as session:
            return AlertRepository(session).record_alert(record)
