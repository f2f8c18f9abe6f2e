"""Interfaces to external collaborators and the REST backend client."""

from .backend import RestBackendClient
from .base import (
    AlertRecordStore,
    AuditSink,
    CandidateSource,
    Notifier,
    ProfileStore,
    PropertyLookup,
)
from .exceptions import (
    BackendConfigurationError,
    BackendError,
    BackendHTTPError,
    BackendResponseError,
    BackendTimeoutError,
)

__all__ = [
    "AlertRecordStore",
    "AuditSink",
    "CandidateSource",
    "Notifier",
    "ProfileStore",
    "PropertyLookup",
    "RestBackendClient",
    "BackendError",
    "BackendHTTPError",
    "BackendTimeoutError",
    "BackendResponseError",
    "BackendConfigurationError",
]
