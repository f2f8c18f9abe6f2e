"""Test helper utilities for the property alert engine tests."""

from .fakes import (
    FakeCandidateSource,
    FakeProfileStore,
    FakePropertyLookup,
    InMemoryAlertStore,
    RecordingAuditSink,
    RecordingNotifier,
    load_fixture_marketplace,
    make_candidate,
    make_property,
)

__all__ = [
    "FakeCandidateSource",
    "FakeProfileStore",
    "FakePropertyLookup",
    "InMemoryAlertStore",
    "RecordingAuditSink",
    "RecordingNotifier",
    "load_fixture_marketplace",
    "make_candidate",
    "make_property",
]
