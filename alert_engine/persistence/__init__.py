"""Persistence layer for alert records, audit events and in-app notifications.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repositories
    - AlertRepository: alert records, buyer history, dashboard statistics
    - AuditRepository: append-only audit log
    - NotificationRepository: in-app notifications

    # Interface implementations
    - SqlAuditSink, SqlAlertRecordStore

Example usage:
    >>> from alert_engine.persistence import init_database, get_session, AlertRepository
    >>> init_database("sqlite:///./data/property_alerts.db")
    >>> with get_session() as session:
    ...     history = AlertRepository(session).get_alerts_for_buyer("buyer-1")
"""

from .database import close_database, get_engine, get_session, init_database
from .exceptions import (
    AuditWriteFailure,
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
)
from .repositories import (
    AlertRepository,
    AlertStatistics,
    AuditRepository,
    NotificationRepository,
)
from .sinks import SqlAlertRecordStore, SqlAuditSink

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "AlertRepository",
    "AlertStatistics",
    "AuditRepository",
    "NotificationRepository",
    "SqlAlertRecordStore",
    "SqlAuditSink",
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
    "AuditWriteFailure",
]
