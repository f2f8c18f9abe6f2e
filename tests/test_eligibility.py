"""Unit tests for the subscription eligibility gate."""

import pytest

from alert_engine.access import AccessDecision, EligibilityGate
from alert_engine.access.gate import (
    REASON_INSUFFICIENT_TIER,
    REASON_OFF_MARKET_REQUIRES_PREMIUM,
    tier_allows,
)
from alert_engine.adapters.exceptions import BackendTimeoutError
from alert_engine.domain.models import AlertClass, SubscriptionTier
from tests.helpers import FakeProfileStore, RecordingAuditSink


@pytest.fixture
def audit_sink():
    return RecordingAuditSink()


@pytest.fixture
def profile_store():
    return FakeProfileStore({"free-1": "free", "basic-1": "basic", "premium-1": "premium", "odd-1": "gold"})


@pytest.fixture
def gate(profile_store, audit_sink):
    return EligibilityGate(profile_store, audit_sink)


class TestTierRule:
    @pytest.mark.parametrize("tier", list(SubscriptionTier))
    def test_on_market_open_to_every_tier(self, tier):
        assert tier_allows(tier, AlertClass.ON_MARKET)

    def test_off_market_requires_premium(self):
        assert tier_allows(SubscriptionTier.PREMIUM, AlertClass.OFF_MARKET)
        assert not tier_allows(SubscriptionTier.BASIC, AlertClass.OFF_MARKET)
        assert not tier_allows(SubscriptionTier.FREE, AlertClass.OFF_MARKET)


class TestEligibilityGate:
    """Tests for EligibilityGate.check_access/evaluate."""

    def test_free_buyer_on_market_allowed(self, gate):
        assert gate.check_access("free-1", AlertClass.ON_MARKET) is True

    def test_free_buyer_off_market_denied(self, gate):
        decision = gate.evaluate("free-1", AlertClass.OFF_MARKET)

        assert decision.allowed is False
        assert decision.reason == REASON_OFF_MARKET_REQUIRES_PREMIUM
        assert decision.tier is SubscriptionTier.FREE

    def test_basic_buyer_off_market_denied(self, gate):
        assert gate.check_access("basic-1", AlertClass.OFF_MARKET) is False

    def test_premium_buyer_allowed_for_both(self, gate):
        assert gate.check_access("premium-1", AlertClass.ON_MARKET) is True
        assert gate.check_access("premium-1", AlertClass.OFF_MARKET) is True

    def test_unknown_tier_treated_as_free(self, gate):
        decision = gate.evaluate("odd-1", AlertClass.OFF_MARKET)
        assert decision.allowed is False
        assert decision.tier is SubscriptionTier.FREE

    def test_missing_profile_denied(self, gate):
        decision = gate.evaluate("ghost", AlertClass.ON_MARKET)

        assert decision == AccessDecision("ghost", AlertClass.ON_MARKET, False, REASON_INSUFFICIENT_TIER)

    def test_lookup_error_denied_without_raising(self, audit_sink):
        gate = EligibilityGate(FakeProfileStore(error=BackendTimeoutError("slow", url="x")), audit_sink)

        decision = gate.evaluate("premium-1", AlertClass.ON_MARKET)

        assert decision.allowed is False
        assert decision.reason == REASON_INSUFFICIENT_TIER
        assert len(audit_sink.decisions) == 1

    def test_every_decision_is_audited(self, gate, audit_sink):
        gate.check_access("free-1", AlertClass.ON_MARKET, property_id="p1")
        gate.check_access("free-1", AlertClass.OFF_MARKET, property_id="p1")

        assert [d.allowed for d, _ in audit_sink.decisions] == [True, False]
        assert all(pid == "p1" for _, pid in audit_sink.decisions)

    def test_audit_failure_is_swallowed(self, profile_store, caplog):
        gate = EligibilityGate(profile_store, RecordingAuditSink(fail=True))

        with caplog.at_level("WARNING"):
            assert gate.check_access("premium-1", AlertClass.OFF_MARKET) is True

        assert any(getattr(r, "event", None) == "audit.write_failed" for r in caplog.records)
