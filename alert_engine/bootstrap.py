"""Wiring for an embedded alert engine.

Loads configuration (``.env`` via python-dotenv, then the YAML file),
configures logging, initializes the alert database and assembles a
RunCoordinator from the concrete adapters. The host application calls
``process_property`` when a listing is approved.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv

from alert_engine.access.gate import EligibilityGate
from alert_engine.adapters.backend import RestBackendClient
from alert_engine.config.environment import EnvironmentConfig
from alert_engine.config.loader import load_config
from alert_engine.config.models import AppConfig
from alert_engine.logging import get_logger
from alert_engine.logging.config import configure_logging
from alert_engine.matching.engine import MatchScorer
from alert_engine.matching.location import LocationMatcher
from alert_engine.normalization.service import PreferenceNormalizer
from alert_engine.notifications.notifier import SmtpNotifier
from alert_engine.notifications.service import AlertDispatcher
from alert_engine.persistence.database import close_database, init_database
from alert_engine.persistence.sinks import SqlAlertRecordStore, SqlAuditSink
from alert_engine.pipeline.models import RunSummary
from alert_engine.pipeline.runner import RunCoordinator

logger = get_logger(__name__, component="bootstrap")


@dataclass
class AlertEngine:
    """A wired coordinator plus the resources it owns."""

    app_config: AppConfig
    env_config: EnvironmentConfig
    backend: RestBackendClient
    coordinator: RunCoordinator

    def process_property(self, property_id: str) -> RunSummary:
        return self.coordinator.process_property(property_id)

    def close(self) -> None:
        self.backend.close()
        close_database()
        logger.info("Alert engine stopped", extra={"event": "service.stopping"})


def resolve_log_level(app_config: AppConfig, env_config: EnvironmentConfig) -> str:
    """LOG_LEVEL from the environment wins over the config file."""
    return env_config.log_level or str(app_config.logging.level)


def build_backend_client(app_config: AppConfig, env_config: EnvironmentConfig) -> RestBackendClient:
    return RestBackendClient(
        base_url=env_config.backend_url,
        service_key=env_config.backend_service_key,
        timeout=app_config.backend.request_timeout,
        user_agent=app_config.backend.user_agent,
        buyer_role=app_config.backend.buyer_role,
    )


def build_coordinator(
    app_config: AppConfig,
    env_config: EnvironmentConfig,
    backend: Optional[RestBackendClient] = None,
) -> RunCoordinator:
    """Assemble a RunCoordinator from configuration.

    The database must already be initialized; the SQL sinks and the
    notifier open sessions through ``get_session``.
    """
    backend = backend or build_backend_client(app_config, env_config)
    audit_sink = SqlAuditSink()

    dispatcher = AlertDispatcher(
        notifier=SmtpNotifier(env_config, app_config.email),
        alert_store=SqlAlertRecordStore(),
        property_url=app_config.alerts.property_url,
    )

    return RunCoordinator(
        property_lookup=backend,
        candidate_source=backend,
        gate=EligibilityGate(profile_store=backend, audit_sink=audit_sink),
        dispatcher=dispatcher,
        audit_sink=audit_sink,
        normalizer=PreferenceNormalizer(
            default_min_budget=app_config.matching.default_min_budget,
            default_max_budget=app_config.matching.default_max_budget,
        ),
        scorer=MatchScorer(location_matcher=LocationMatcher(app_config.matching.region_suffixes)),
        dispatch_config=app_config.dispatch,
    )


def create_engine_from_config(config_path: Optional[Union[str, Path]] = None) -> AlertEngine:
    """Load configuration and build a ready-to-use AlertEngine.

    Raises:
        ConfigurationError: If the config file or environment is invalid
        DatabaseConnectionError: If the alert database cannot be opened
    """
    load_dotenv()
    app_config, env_config = load_config(config_path)

    configure_logging(
        level=resolve_log_level(app_config, env_config),
        format_type=app_config.logging.format,
        environment=os.environ.get("ENVIRONMENT", "local"),
    )

    init_database(env_config.database_url)

    backend = build_backend_client(app_config, env_config)
    coordinator = build_coordinator(app_config, env_config, backend=backend)

    logger.info(
        "Alert engine initialized",
        extra={
            "event": "service.starting",
            "max_workers": app_config.dispatch.max_workers,
            "max_retries": app_config.dispatch.max_retries,
            "log_format": app_config.logging.format,
        },
    )
    return AlertEngine(
        app_config=app_config,
        env_config=env_config,
        backend=backend,
        coordinator=coordinator,
    )
