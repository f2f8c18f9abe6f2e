"""Database schema definition and ORM models.

ORM models for alert records, audit events and in-app notifications, with
conversion to and from the domain models. Timestamps are stored as ISO 8601
strings with a 'Z' suffix.
"""

import json
import logging
from typing import Any, Dict, Optional

from sqlalchemy import Boolean, Column, Index, Integer, String, Text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from alert_engine.domain.models import (
    AlertClass,
    AlertRecord,
    AlertStatus,
    AuditEvent,
    InAppNotification,
)
from alert_engine.utils.timestamps import from_storage, to_storage

logger = logging.getLogger(__name__)

Base = declarative_base()


class AlertRecordModel(Base):
    """ORM model for the property_alerts table.

    Append-only. Several rows may exist for one (buyer, property) pair when
    earlier attempts failed; no unique constraint is enforced.
    """

    __tablename__ = "property_alerts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    buyer_id = Column(String(255), nullable=False)
    property_id = Column(String(255), nullable=False)
    alert_type = Column(String(20), nullable=False)
    status = Column(String(20), nullable=False)
    email_template = Column(String(100), nullable=False)
    sent_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_property_alerts_pair", "buyer_id", "property_id"),
        Index("idx_property_alerts_sent_at", "sent_at"),
    )

    def to_domain(self) -> AlertRecord:
        return AlertRecord(
            buyer_id=self.buyer_id,
            property_id=self.property_id,
            alert_type=AlertClass(self.alert_type),
            status=AlertStatus(self.status),
            email_template=self.email_template,
            sent_at=from_storage(self.sent_at),
        )

    @classmethod
    def from_domain(cls, record: AlertRecord) -> "AlertRecordModel":
        return cls(
            buyer_id=record.buyer_id,
            property_id=record.property_id,
            alert_type=record.alert_type.value,
            status=record.status.value,
            email_template=record.email_template,
            sent_at=to_storage(record.sent_at),
        )


class AuditEventModel(Base):
    """ORM model for the audit_events table."""

    __tablename__ = "audit_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    action = Column(String(100), nullable=False)
    user_id = Column(String(255), nullable=True)
    property_id = Column(String(255), nullable=True)
    success = Column(Boolean, nullable=False, default=True)
    details = Column(Text, nullable=False, default="{}")
    created_at = Column(String(50), nullable=False)

    __table_args__ = (
        Index("idx_audit_events_action", "action", "created_at"),
        Index("idx_audit_events_user", "user_id"),
    )

    def to_domain(self) -> AuditEvent:
        return AuditEvent(
            action=self.action,
            user_id=self.user_id,
            property_id=self.property_id,
            success=bool(self.success),
            details=_load_json(self.details),
            created_at=from_storage(self.created_at),
        )

    @classmethod
    def from_domain(cls, event: AuditEvent) -> "AuditEventModel":
        return cls(
            action=event.action,
            user_id=event.user_id,
            property_id=event.property_id,
            success=event.success,
            details=json.dumps(event.details, default=str, sort_keys=True),
            created_at=to_storage(event.created_at),
        )


class NotificationModel(Base):
    """ORM model for the notifications table (in-app notifications)."""

    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(255), nullable=False)
    kind = Column(String(50), nullable=False)
    title = Column(Text, nullable=False)
    body = Column(Text, nullable=False)
    link = Column(Text, nullable=True)
    # "metadata" is reserved on declarative classes
    metadata_json = Column("metadata", Text, nullable=False, default="{}")
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(String(50), nullable=False)

    __table_args__ = (Index("idx_notifications_user", "user_id", "created_at"),)

    def to_domain(self) -> InAppNotification:
        return InAppNotification(
            user_id=self.user_id,
            kind=self.kind,
            title=self.title,
            body=self.body,
            link=self.link,
            metadata=_load_json(self.metadata_json),
            read=bool(self.read),
            created_at=from_storage(self.created_at),
        )

    @classmethod
    def from_domain(cls, notification: InAppNotification) -> "NotificationModel":
        return cls(
            user_id=notification.user_id,
            kind=notification.kind,
            title=notification.title,
            body=notification.body,
            link=notification.link,
            metadata_json=json.dumps(notification.metadata, default=str, sort_keys=True),
            read=notification.read,
            created_at=to_storage(notification.created_at),
        )


def _load_json(value: Optional[str]) -> Dict[str, Any]:
    if not value:
        return {}
    loaded = json.loads(value)
    return loaded if isinstance(loaded, dict) else {"value": loaded}


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    Base.metadata.create_all(engine, checkfirst=True)
    logger.info(
        "Database schema ready",
        extra={"event": "database.schema.ready", "tables": inspect(engine).get_table_names()},
    )
