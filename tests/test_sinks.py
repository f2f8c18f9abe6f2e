"""Tests for the SQL-backed audit sink and alert record store."""

from contextlib import contextmanager
from datetime import datetime, timezone

import pytest
from sqlalchemy.exc import OperationalError

from alert_engine.access.gate import REASON_OFF_MARKET_REQUIRES_PREMIUM, AccessDecision
from alert_engine.domain.models import AlertClass, AlertRecord, AlertStatus, SubscriptionTier
from alert_engine.persistence import (
    AuditRepository,
    AuditWriteFailure,
    SqlAlertRecordStore,
    SqlAuditSink,
    close_database,
    get_session,
    init_database,
)
from alert_engine.pipeline.models import RunState, RunSummary


@pytest.fixture
def db():
    init_database("sqlite:///:memory:")
    yield
    close_database()


def audit_events(action=None):
    with get_session() as session:
        return AuditRepository(session).list_events(action=action)


@contextmanager
def broken_session():
    raise OperationalError("INSERT", {}, Exception("database is locked"))
    yield  # pragma: no cover


class TestSqlAuditSink:
    def test_access_granted(self, db):
        decision = AccessDecision("b1", AlertClass.ON_MARKET, True, None, SubscriptionTier.BASIC)

        SqlAuditSink().record_access_decision(decision, "prop-1")

        [event] = audit_events()
        assert event.action == "feature_access_granted"
        assert event.user_id == "b1"
        assert event.property_id == "prop-1"
        assert event.success is True
        assert event.details == {
            "alert_class": "on_market",
            "feature": "property_alerts",
            "reason": None,
            "tier": "basic",
        }

    def test_access_denied(self, db):
        decision = AccessDecision(
            "b2", AlertClass.OFF_MARKET, False, REASON_OFF_MARKET_REQUIRES_PREMIUM, SubscriptionTier.FREE
        )

        SqlAuditSink().record_access_decision(decision, "prop-9")

        [event] = audit_events("feature_access_denied")
        assert event.success is False
        assert event.details["reason"] == "off_market_requires_premium"

    def test_alert_sent(self, db):
        SqlAuditSink().record_alert_sent("b1", "prop-1", AlertClass.OFF_MARKET, ("location", "features"))

        [event] = audit_events("alert_sent")
        assert event.details == {"alert_type": "off_market", "matched_criteria": ["location", "features"]}

    def test_run_summary(self, db):
        started = datetime(2026, 3, 11, 9, 0, tzinfo=timezone.utc)
        summary = RunSummary(property_id="prop-1", run_id="abc", started_at=started)
        summary.alerts_sent = 2
        summary.finish(RunState.DONE, started.replace(second=3))

        SqlAuditSink().record_run_summary(summary)

        [event] = audit_events("process_new_property")
        assert event.user_id == "system"
        assert event.property_id == "prop-1"
        assert event.success is True
        assert event.details["alerts_sent"] == 2
        assert event.details["duration_seconds"] == 3.0

    def test_storage_failure_raises_audit_write_failure(self):
        sink = SqlAuditSink(session_scope=broken_session)

        with pytest.raises(AuditWriteFailure) as exc_info:
            sink.record_alert_sent("b1", "prop-1", AlertClass.ON_MARKET, [])

        assert exc_info.value.action == "alert_sent"


class TestSqlAlertRecordStore:
    def test_round_trip(self, db):
        store = SqlAlertRecordStore()
        record = AlertRecord(
            buyer_id="b1",
            property_id="prop-1",
            alert_type=AlertClass.ON_MARKET,
            status=AlertStatus.SENT,
            email_template="propertyAlert",
        )

        assert store.has_active_alert("b1", "prop-1") is False
        saved = store.record_alert(record)

        assert saved.buyer_id == "b1"
        assert store.has_active_alert("b1", "prop-1") is True

    def test_storage_errors_propagate(self):
        store = SqlAlertRecordStore(session_scope=broken_session)

        with pytest.raises(OperationalError):
            store.has_active_alert("b1", "prop-1")
