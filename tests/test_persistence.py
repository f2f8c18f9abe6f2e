"""Unit tests for the persistence layer."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import inspect

from alert_engine.domain.models import (
    AlertClass,
    AlertRecord,
    AlertStatus,
    AuditEvent,
    InAppNotification,
)
from alert_engine.persistence import (
    AlertRepository,
    AuditRepository,
    DatabaseConnectionError,
    NotificationRepository,
    close_database,
    get_engine,
    get_session,
    init_database,
)
from alert_engine.persistence.database import _redact_url

NOW = datetime(2026, 3, 11, 15, 30, tzinfo=timezone.utc)


@pytest.fixture
def db():
    init_database("sqlite:///:memory:")
    yield
    close_database()


def alert(buyer_id="buyer-1", property_id="prop-1", status=AlertStatus.SENT, sent_at=NOW):
    return AlertRecord(
        buyer_id=buyer_id,
        property_id=property_id,
        alert_type=AlertClass.ON_MARKET,
        status=status,
        email_template="propertyAlert",
        sent_at=sent_at,
    )


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_file_database_created_with_parent_directories(self, tmp_path):
        db_file = tmp_path / "nested" / "alerts.db"

        init_database(f"sqlite:///{db_file}")
        try:
            assert db_file.exists()
            tables = set(inspect(get_engine()).get_table_names())
            assert {"property_alerts", "audit_events", "notifications"} <= tables
        finally:
            close_database()

    def test_schema_creation_is_idempotent(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'alerts.db'}"
        init_database(url)
        close_database()

        init_database(url)
        close_database()

    def test_invalid_url_raises(self):
        with pytest.raises(DatabaseConnectionError):
            init_database("")
        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_session_requires_initialization(self):
        close_database()
        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass

    def test_close_is_safe_when_not_initialized(self):
        close_database()
        close_database()

    def test_session_rolls_back_on_error(self, db):
        with pytest.raises(RuntimeError):
            with get_session() as session:
                AlertRepository(session).record_alert(alert())
                raise RuntimeError("boom")

        with get_session() as session:
            assert AlertRepository(session).get_alerts_for_buyer("buyer-1") == []

    def test_password_redacted_in_logs(self):
        assert _redact_url("postgresql://app:s3cret@db:5432/alerts") == "postgresql://app:***@db:5432/alerts"
        assert _redact_url("sqlite:///./data/alerts.db") == "sqlite:///./data/alerts.db"


class TestAlertRepository:
    """Tests for alert record operations."""

    def test_record_and_check_active(self, db):
        with get_session() as session:
            saved = AlertRepository(session).record_alert(alert())

        assert saved.sent_at == NOW
        with get_session() as session:
            repo = AlertRepository(session)
            assert repo.has_active_alert("buyer-1", "prop-1") is True
            assert repo.has_active_alert("buyer-1", "prop-2") is False
            assert repo.has_active_alert("buyer-2", "prop-1") is False

    def test_failed_record_is_not_active(self, db):
        with get_session() as session:
            AlertRepository(session).record_alert(alert(status=AlertStatus.FAILED))

        with get_session() as session:
            assert AlertRepository(session).has_active_alert("buyer-1", "prop-1") is False

    def test_multiple_records_per_pair_allowed(self, db):
        with get_session() as session:
            repo = AlertRepository(session)
            repo.record_alert(alert(status=AlertStatus.FAILED))
            repo.record_alert(alert(status=AlertStatus.SENT, sent_at=NOW + timedelta(minutes=1)))

        with get_session() as session:
            records = AlertRepository(session).get_alerts_for_buyer("buyer-1")
        assert [r.status for r in records] == [AlertStatus.SENT, AlertStatus.FAILED]

    def test_buyer_history_newest_first_with_limit(self, db):
        with get_session() as session:
            repo = AlertRepository(session)
            for i in range(5):
                repo.record_alert(alert(property_id=f"prop-{i}", sent_at=NOW + timedelta(hours=i)))
            repo.record_alert(alert(buyer_id="buyer-2"))

        with get_session() as session:
            history = AlertRepository(session).get_alerts_for_buyer("buyer-1", limit=3)
        assert [r.property_id for r in history] == ["prop-4", "prop-3", "prop-2"]


class TestAlertStatistics:
    """Tests for dashboard statistics."""

    def test_empty_database(self, db):
        with get_session() as session:
            stats = AlertRepository(session).get_alert_statistics(now=NOW)

        assert stats.total_alerts == 0
        assert stats.success_rate == 0.0
        assert stats.top_matched_criteria == []

    def test_counts_and_success_rate(self, db):
        with get_session() as session:
            repo = AlertRepository(session)
            repo.record_alert(alert(property_id="p1", sent_at=NOW - timedelta(hours=1)))
            repo.record_alert(alert(property_id="p2", sent_at=NOW - timedelta(days=2)))
            repo.record_alert(alert(property_id="p3", sent_at=NOW - timedelta(days=30)))
            repo.record_alert(alert(property_id="p4", status=AlertStatus.FAILED, sent_at=NOW))

        with get_session() as session:
            stats = AlertRepository(session).get_alert_statistics(now=NOW)

        assert stats.total_alerts == 4
        assert stats.alerts_today == 2
        assert stats.alerts_this_week == 3
        assert stats.success_rate == 75.0

    def test_top_matched_criteria_from_recent_audit_events(self, db):
        with get_session() as session:
            audit = AuditRepository(session)
            for criteria in (["location", "price_min"], ["location"], ["bedrooms", "location"]):
                audit.append(
                    AuditEvent(
                        action="alert_sent",
                        user_id="buyer-1",
                        details={"matched_criteria": criteria},
                        created_at=NOW - timedelta(days=1),
                    )
                )
            audit.append(
                AuditEvent(
                    action="alert_sent",
                    details={"matched_criteria": ["garages"]},
                    created_at=NOW - timedelta(days=20),
                )
            )

        with get_session() as session:
            stats = AlertRepository(session).get_alert_statistics(now=NOW)

        assert stats.top_matched_criteria[0] == ("location", 3)
        assert ("garages", 1) not in stats.top_matched_criteria


class TestAuditRepository:
    def test_append_and_filter(self, db):
        with get_session() as session:
            repo = AuditRepository(session)
            repo.append(AuditEvent(action="feature_access_granted", user_id="b1", details={"tier": "premium"}))
            repo.append(AuditEvent(action="feature_access_denied", user_id="b2", success=False))

        with get_session() as session:
            repo = AuditRepository(session)
            assert len(repo.list_events()) == 2
            denied = repo.list_events(action="feature_access_denied")
            assert [e.user_id for e in denied] == ["b2"]
            assert denied[0].success is False
            granted = repo.list_events(user_id="b1")
            assert granted[0].details == {"tier": "premium"}


class TestNotificationRepository:
    def test_create_and_list(self, db):
        with get_session() as session:
            NotificationRepository(session).create(
                InAppNotification(
                    user_id="b1",
                    kind="property_alert",
                    title="New property match",
                    body="A house matches your preferences.",
                    link="https://pickfirst.com.au/property/p1",
                    metadata={"property_id": "p1", "match_score": 0.5},
                )
            )

        with get_session() as session:
            notes = NotificationRepository(session).get_for_user("b1")

        assert len(notes) == 1
        assert notes[0].metadata == {"match_score": 0.5, "property_id": "p1"}
        assert notes[0].read is False
