"""End-to-end runs against a SQLite alert database.

The backend and the email channel are replaced by the in-memory fakes; the
audit sink and alert record store are the real SQL implementations.
"""

import logging
from pathlib import Path

import pytest

from alert_engine.access.gate import EligibilityGate
from alert_engine.bootstrap import build_coordinator, create_engine_from_config
from alert_engine.config.environment import EnvironmentConfig
from alert_engine.config.models import AppConfig, DispatchConfig
from alert_engine.domain.models import AlertClass, AlertStatus
from alert_engine.notifications import AlertDispatcher
from alert_engine.persistence import (
    AlertRepository,
    AuditRepository,
    SqlAlertRecordStore,
    SqlAuditSink,
    close_database,
    get_session,
    init_database,
)
from alert_engine.pipeline import RunCoordinator, RunState, Stage
from tests.helpers import (
    FakeCandidateSource,
    FakeProfileStore,
    FakePropertyLookup,
    RecordingNotifier,
    load_fixture_marketplace,
)

FIXTURE = Path(__file__).parent.parent / "fixtures" / "marketplace.yaml"


@pytest.fixture
def marketplace():
    return load_fixture_marketplace(FIXTURE)


@pytest.fixture
def database(tmp_path):
    init_database(f"sqlite:///{tmp_path / 'alerts.db'}")
    yield
    close_database()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def coordinator(database, marketplace, notifier):
    audit_sink = SqlAuditSink()
    return RunCoordinator(
        property_lookup=FakePropertyLookup(marketplace["properties"].values()),
        candidate_source=FakeCandidateSource(marketplace["candidates"]),
        gate=EligibilityGate(FakeProfileStore(marketplace["tiers"]), audit_sink),
        dispatcher=AlertDispatcher(notifier, SqlAlertRecordStore()),
        audit_sink=audit_sink,
        dispatch_config=DispatchConfig(max_workers=2),
        sleep=lambda _: None,
    )


def audit_actions(action):
    with get_session() as session:
        return AuditRepository(session).list_events(action=action)


class TestOnMarketRun:
    def test_summary(self, coordinator, notifier):
        summary = coordinator.process_property("p-100")

        assert summary.state is RunState.DONE
        assert summary.candidates_evaluated == 5
        assert summary.access_denied_count == 0
        assert summary.matches_found == 1
        assert summary.alerts_sent == 1
        assert [(f.buyer_id, f.stage) for f in summary.failures] == [("dave", Stage.NORMALIZE)]
        assert [e["email"] for e in notifier.emails] == ["alice@example.com"]

    def test_alert_email_content(self, coordinator, notifier):
        coordinator.process_property("p-100")

        email = notifier.emails[0]
        assert email["name"] == "Alice Nguyen"
        assert email["alert_class"] is AlertClass.ON_MARKET
        assert email["view"].matching_features == ("Pool",)
        assert email["view"].image == "https://images.example.com/p-100/front.jpg"

    def test_records_and_audit_trail(self, coordinator):
        coordinator.process_property("p-100")

        with get_session() as session:
            [record] = AlertRepository(session).get_alerts_for_buyer("alice")
        assert record.property_id == "p-100"
        assert record.status is AlertStatus.SENT
        assert record.email_template == "propertyAlert"

        assert len(audit_actions("feature_access_granted")) == 5
        [sent] = audit_actions("alert_sent")
        assert sent.user_id == "alice"
        assert "location" in sent.details["matched_criteria"]
        [run] = audit_actions("process_new_property")
        assert run.details["alerts_sent"] == 1
        assert run.details["failure_count"] == 1

    def test_rerun_is_suppressed(self, coordinator, notifier):
        coordinator.process_property("p-100")
        summary = coordinator.process_property("p-100")

        assert summary.alerts_sent == 0
        assert summary.duplicates_skipped == 1
        assert len(notifier.emails) == 1
        assert len(audit_actions("process_new_property")) == 2


class TestOffMarketRun:
    def test_only_premium_buyers_alerted(self, coordinator, notifier):
        summary = coordinator.process_property("p-200")

        assert summary.access_denied_count == 2
        assert summary.alerts_sent == 1
        assert [e["email"] for e in notifier.emails] == ["bob@example.com"]
        assert notifier.emails[0]["alert_class"] is AlertClass.OFF_MARKET

        denied = audit_actions("feature_access_denied")
        assert sorted(e.user_id for e in denied) == ["alice", "carol"]
        assert {e.details["reason"] for e in denied} == {"off_market_requires_premium"}

    def test_statistics_after_both_runs(self, coordinator):
        coordinator.process_property("p-100")
        coordinator.process_property("p-200")

        with get_session() as session:
            stats = AlertRepository(session).get_alert_statistics()

        assert stats.total_alerts == 2
        assert stats.alerts_today == 2
        assert stats.success_rate == 100.0
        assert dict(stats.top_matched_criteria)["price_max"] == 2


class TestDeliveryFailure:
    def test_failed_delivery_recorded_then_retried_next_run(self, database, marketplace):
        notifier = RecordingNotifier(failing_emails=["alice@example.com"], fail_times=1)
        audit_sink = SqlAuditSink()
        coordinator = RunCoordinator(
            property_lookup=FakePropertyLookup(marketplace["properties"].values()),
            candidate_source=FakeCandidateSource(marketplace["candidates"]),
            gate=EligibilityGate(FakeProfileStore(marketplace["tiers"]), audit_sink),
            dispatcher=AlertDispatcher(notifier, SqlAlertRecordStore()),
            audit_sink=audit_sink,
            dispatch_config=DispatchConfig(max_workers=1),
        )

        first = coordinator.process_property("p-100")
        second = coordinator.process_property("p-100")

        assert first.alerts_failed == 1
        assert second.alerts_sent == 1
        with get_session() as session:
            statuses = [r.status for r in AlertRepository(session).get_alerts_for_buyer("alice")]
        assert sorted(s.value for s in statuses) == ["failed", "sent"]


class TestBootstrap:
    def test_build_coordinator_from_config(self, database, marketplace):
        env_config = EnvironmentConfig(
            backend_url="https://backend.example.com",
            backend_service_key="key",
            smtp_host="smtp.example.com",
            smtp_port=587,
        )
        app_config = AppConfig.model_validate(
            {
                "dispatch": {"max_workers": 3},
                "alerts": {"property_url_template": "https://homes.test/listing/{property_id}"},
                "matching": {"default_max_budget": 2_000_000},
            }
        )
        backend = FakePropertyLookup(marketplace["properties"].values())

        coordinator = build_coordinator(app_config, env_config, backend=backend)

        assert coordinator.dispatch_config.max_workers == 3
        assert coordinator.property_lookup is backend
        assert coordinator.normalizer.default_max_budget == 2_000_000
        assert coordinator.dispatcher.property_url(property_id="p-1") == "https://homes.test/listing/p-1"

    def test_create_engine_from_config(self, tmp_path, monkeypatch):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("dispatch:\n  max_workers: 1\nlogging:\n  format: json\n")
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BACKEND_URL", "https://backend.example.com")
        monkeypatch.setenv("BACKEND_SERVICE_KEY", "key")
        monkeypatch.setenv("SMTP_HOST", "smtp.example.com")
        monkeypatch.setenv("SMTP_PORT", "587")
        monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'engine.db'}")
        for name in ("SMTP_USER", "SMTP_PASS", "LOG_LEVEL"):
            monkeypatch.delenv(name, raising=False)

        root = logging.getLogger()
        handlers, level = list(root.handlers), root.level
        engine = create_engine_from_config(config_file)
        try:
            assert engine.app_config.dispatch.max_workers == 1
            assert engine.env_config.smtp_host == "smtp.example.com"
            assert (tmp_path / "engine.db").exists()
        finally:
            engine.close()
            root.handlers[:] = handlers
            root.setLevel(level)
