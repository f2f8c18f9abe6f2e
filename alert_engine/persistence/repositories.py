"""Data access layer (repositories) for persistence operations.

Repositories wrap one SQLAlchemy session each, return domain models rather
than ORM models, and convert SQLAlchemy errors into PersistenceError
subclasses.
"""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from alert_engine.domain.models import AlertRecord, AlertStatus, AuditEvent, InAppNotification
from alert_engine.utils.timestamps import start_of_day, to_storage, utc_now

from .exceptions import DataIntegrityError, PersistenceError
from .schema import AlertRecordModel, AuditEventModel, NotificationModel

logger = logging.getLogger(__name__)

ACTION_ALERT_SENT = "alert_sent"
TOP_CRITERIA_LIMIT = 5


@dataclass
class AlertStatistics:
    """Aggregate alert metrics for the admin dashboard.

    Attributes:
        total_alerts: All alert records
        alerts_today: Records since midnight UTC
        alerts_this_week: Records in the last seven days
        success_rate: Percentage of non-failed records, two decimals
        top_matched_criteria: (criterion, count) pairs from alert_sent audit
            events of the last seven days, most frequent first
    """

    total_alerts: int = 0
    alerts_today: int = 0
    alerts_this_week: int = 0
    success_rate: float = 0.0
    top_matched_criteria: List[Tuple[str, int]] = field(default_factory=list)


class AlertRepository:
    """Repository for alert record operations."""

    def __init__(self, session: Session):
        self.session = session

    def has_active_alert(self, buyer_id: str, property_id: str) -> bool:
        """Check whether a non-failed alert exists for the pair.

        Raises:
            PersistenceError: If database error occurs
        """
        try:
            stmt = (
                select(AlertRecordModel.id)
                .where(
                    AlertRecordModel.buyer_id == buyer_id,
                    AlertRecordModel.property_id == property_id,
                    AlertRecordModel.status != AlertStatus.FAILED.value,
                )
                .limit(1)
            )
            return self.session.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            logger.error(
                f"Error checking alert for buyer {buyer_id} / property {property_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to check alert status: {e}") from e

    def record_alert(self, record: AlertRecord) -> AlertRecord:
        """Append an alert record.

        Raises:
            DataIntegrityError: If a constraint is violated
            PersistenceError: If database error occurs
        """
        try:
            model = AlertRecordModel.from_domain(record)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except IntegrityError as e:
            logger.error(f"Integrity error recording alert: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to record alert: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error recording alert: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record alert: {e}") from e

    def get_alerts_for_buyer(self, buyer_id: str, limit: int = 50) -> List[AlertRecord]:
        """Most recent alert records for one buyer, newest first."""
        try:
            stmt = (
                select(AlertRecordModel)
                .where(AlertRecordModel.buyer_id == buyer_id)
                .order_by(AlertRecordModel.sent_at.desc(), AlertRecordModel.id.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving alerts for buyer {buyer_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve alerts: {e}") from e

    def get_alert_statistics(self, now: Optional[datetime] = None) -> AlertStatistics:
        """Compute dashboard metrics as of ``now`` (defaults to the current time)."""
        now = now or utc_now()
        today_start = to_storage(start_of_day(now))
        week_start = to_storage(now - timedelta(days=7))

        try:
            total = self._count()
            today = self._count(AlertRecordModel.sent_at >= today_start)
            week = self._count(AlertRecordModel.sent_at >= week_start)
            successful = self._count(AlertRecordModel.status != AlertStatus.FAILED.value)

            criteria_counts: Counter = Counter()
            stmt = select(AuditEventModel).where(
                AuditEventModel.action == ACTION_ALERT_SENT,
                AuditEventModel.created_at >= week_start,
            )
            for model in self.session.execute(stmt).scalars():
                criteria_counts.update(model.to_domain().details.get("matched_criteria", []))
        except SQLAlchemyError as e:
            logger.error(f"Error computing alert statistics: {e}", exc_info=True)
            raise PersistenceError(f"Failed to compute alert statistics: {e}") from e

        success_rate = round(successful / total * 100, 2) if total else 0.0
        return AlertStatistics(
            total_alerts=total,
            alerts_today=today,
            alerts_this_week=week,
            success_rate=success_rate,
            top_matched_criteria=criteria_counts.most_common(TOP_CRITERIA_LIMIT),
        )

    def _count(self, *conditions) -> int:
        stmt = select(func.count(AlertRecordModel.id))
        if conditions:
            stmt = stmt.where(*conditions)
        return int(self.session.execute(stmt).scalar_one())


class AuditRepository:
    """Repository for the append-only audit log."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, event: AuditEvent) -> AuditEvent:
        try:
            model = AuditEventModel.from_domain(event)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error appending audit event {event.action}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to append audit event: {e}") from e

    def list_events(
        self,
        action: Optional[str] = None,
        user_id: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> List[AuditEvent]:
        """Audit events in insertion order, optionally filtered."""
        try:
            stmt = select(AuditEventModel)
            if action is not None:
                stmt = stmt.where(AuditEventModel.action == action)
            if user_id is not None:
                stmt = stmt.where(AuditEventModel.user_id == user_id)
            if since is not None:
                stmt = stmt.where(AuditEventModel.created_at >= to_storage(since))
            stmt = stmt.order_by(AuditEventModel.id)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error listing audit events: {e}", exc_info=True)
            raise PersistenceError(f"Failed to list audit events: {e}") from e


class NotificationRepository:
    """Repository for in-app notifications."""

    def __init__(self, session: Session):
        self.session = session

    def create(self, notification: InAppNotification) -> InAppNotification:
        try:
            model = NotificationModel.from_domain(notification)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(
                f"Error creating notification for user {notification.user_id}: {e}",
                exc_info=True,
            )
            raise PersistenceError(f"Failed to create notification: {e}") from e

    def get_for_user(self, user_id: str, limit: int = 50) -> List[InAppNotification]:
        try:
            stmt = (
                select(NotificationModel)
                .where(NotificationModel.user_id == user_id)
                .order_by(NotificationModel.created_at.desc(), NotificationModel.id.desc())
                .limit(limit)
            )
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving notifications for user {user_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve notifications: {e}") from e
