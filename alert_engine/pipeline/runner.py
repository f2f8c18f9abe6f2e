"""Run orchestration: one approved property against every alert candidate."""

import contextvars
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional
from uuid import uuid4

from alert_engine.access.gate import EligibilityGate
from alert_engine.adapters.base import AuditSink, CandidateSource, PropertyLookup
from alert_engine.config.models import DispatchConfig
from alert_engine.domain.models import AlertClass, BuyerCandidate, Property
from alert_engine.logging import get_logger
from alert_engine.logging.context import log_context
from alert_engine.matching.engine import MatchScorer
from alert_engine.normalization.service import PreferenceNormalizer
from alert_engine.notifications.models import (
    STATUS_DUPLICATE,
    STATUS_FAILED,
    STATUS_SENT,
    DispatchFailure,
    DispatchOutcome,
)
from alert_engine.notifications.service import AlertDispatcher
from alert_engine.utils.timestamps import utc_now

from .exceptions import PropertyNotFound
from .models import BuyerFailure, CandidateOutcome, RunState, RunSummary, Stage

logger = get_logger(__name__, component="coordinator")

ERROR_PROPERTY_NOT_FOUND = "Property not found or not approved"
ERROR_CANDIDATES_UNAVAILABLE = "Failed to fetch buyers with alerts"

MAX_RETRY_DELAY = 60.0


class RunCoordinator:
    """
    Processes a newly approved property against all alert candidates.

    For each candidate: eligibility gate, preference normalization, scoring
    and, for matches, alert dispatch. Candidates are independent; a failure
    is recorded against the candidate and the run carries on. Counters are
    aggregated in the calling thread after the workers finish.

    Overlapping runs for one property are not serialized here; the
    dispatcher suppresses the second alert for a (buyer, property) pair.
    """

    def __init__(
        self,
        property_lookup: PropertyLookup,
        candidate_source: CandidateSource,
        gate: EligibilityGate,
        dispatcher: AlertDispatcher,
        audit_sink: AuditSink,
        normalizer: Optional[PreferenceNormalizer] = None,
        scorer: Optional[MatchScorer] = None,
        dispatch_config: Optional[DispatchConfig] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """
        Initialize the coordinator.

        Args:
            property_lookup: Source of approved properties
            candidate_source: Source of buyers with alerts enabled
            gate: Subscription eligibility gate
            dispatcher: Alert dispatcher
            audit_sink: Audit log for sent alerts and run summaries
            normalizer: Preference normalizer (default settings if None)
            scorer: Match scorer (default location matcher if None)
            dispatch_config: Worker count and retry settings
            sleep: Delay function used between dispatch retries
            logger_instance: Logger instance (uses module logger if None)
        """
        self.property_lookup = property_lookup
        self.candidate_source = candidate_source
        self.gate = gate
        self.dispatcher = dispatcher
        self.audit_sink = audit_sink
        self.normalizer = normalizer or PreferenceNormalizer()
        self.scorer = scorer or MatchScorer()
        self.dispatch_config = dispatch_config or DispatchConfig()
        self._sleep = sleep
        self.logger = logger_instance or logger

    def process_property(self, property_id: str) -> RunSummary:
        """
        Run the full alert flow for one property.

        Returns:
            RunSummary in state DONE or FAILED. Nothing is raised for
            candidate-level problems; they are listed in ``failures``.
        """
        property_id = str(property_id)
        summary = RunSummary(property_id=property_id, run_id=uuid4().hex, started_at=utc_now())

        with log_context(run_id=summary.run_id, property_id=property_id):
            return self._run(summary)

    def _run(self, summary: RunSummary) -> RunSummary:
        self.logger.info("Run started", extra={"event": "run.started"})

        try:
            prop = self._load_property(summary.property_id)
        except PropertyNotFound:
            return self._fail(summary, ERROR_PROPERTY_NOT_FOUND)

        summary.state = RunState.LOADING_CANDIDATES
        try:
            candidates = self.candidate_source.list_eligible_buyers()
        except Exception as e:
            self.logger.error(
                f"Failed to load alert candidates: {e}",
                exc_info=True,
                extra={"event": "candidates.load_failed", "error_type": type(e).__name__},
            )
            return self._fail(summary, ERROR_CANDIDATES_UNAVAILABLE)

        summary.state = RunState.EVALUATING
        alert_class = prop.alert_class
        self.logger.info(
            f"Evaluating {len(candidates)} candidates",
            extra={
                "event": "run.evaluating",
                "candidate_count": len(candidates),
                "alert_class": alert_class,
            },
        )

        for outcome in self._evaluate_all(candidates, prop, alert_class):
            self._aggregate(summary, outcome, prop, alert_class)

        summary.finish(RunState.DONE, utc_now())

        try:
            self.audit_sink.record_run_summary(summary)
        except Exception as e:
            self._log_audit_failure("run_summary", e)

        self.logger.info(
            "Run completed",
            extra={
                "event": "run.completed",
                "duration_ms": int(summary.duration_seconds * 1000),
                **summary.to_audit_details(),
            },
        )
        return summary

    def _load_property(self, property_id: str) -> Property:
        try:
            prop = self.property_lookup.get_approved_property(property_id)
        except Exception as e:
            self.logger.error(
                f"Property lookup failed for {property_id}: {e}",
                exc_info=True,
                extra={"event": "property.lookup_failed", "error_type": type(e).__name__},
            )
            raise PropertyNotFound(property_id) from e

        if prop is None:
            raise PropertyNotFound(property_id)
        return prop

    def _fail(self, summary: RunSummary, error: str) -> RunSummary:
        summary.finish(RunState.FAILED, utc_now(), error)
        self.logger.error(
            f"Run failed: {error}",
            extra={"event": "run.failed", "error": error},
        )
        return summary

    def _evaluate_all(
        self, candidates: List[BuyerCandidate], prop: Property, alert_class: AlertClass
    ) -> List[CandidateOutcome]:
        workers = min(self.dispatch_config.max_workers, len(candidates))
        if workers <= 1:
            return [self._process_candidate(c, prop, alert_class) for c in candidates]

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="alert-worker") as executor:
            # Each task gets its own copy so the run's log context reaches the worker
            futures = [
                executor.submit(
                    contextvars.copy_context().run,
                    self._process_candidate,
                    candidate,
                    prop,
                    alert_class,
                )
                for candidate in candidates
            ]
            return [future.result() for future in futures]

    def _process_candidate(
        self, candidate: BuyerCandidate, prop: Property, alert_class: AlertClass
    ) -> CandidateOutcome:
        outcome = CandidateOutcome(buyer_id=candidate.buyer_id)
        stage = Stage.ACCESS

        with log_context(buyer_id=candidate.buyer_id):
            try:
                if not self.gate.check_access(candidate.buyer_id, alert_class, prop.id):
                    outcome.access_denied = True
                    return outcome

                if candidate.raw_preferences is None:
                    self.logger.debug(
                        "Candidate has no stored preferences",
                        extra={"event": "candidate.skipped", "reason": "no_preferences"},
                    )
                    outcome.skipped = True
                    return outcome

                stage = Stage.NORMALIZE
                criteria = self.normalizer.normalize(candidate.raw_preferences)

                stage = Stage.SCORE
                outcome.match_result = self.scorer.evaluate(prop, criteria, candidate.buyer_id)
                if not outcome.matched:
                    return outcome

                stage = Stage.DISPATCH
                dispatched = self._dispatch_with_retry(candidate, prop, alert_class, outcome)
                outcome.dispatch_status = dispatched.status

            except Exception as e:
                if isinstance(e, DispatchFailure):
                    outcome.dispatch_status = STATUS_FAILED
                outcome.failure = BuyerFailure(
                    buyer_id=candidate.buyer_id,
                    stage=stage,
                    error_type=type(e).__name__,
                    message=str(e),
                )
                self.logger.error(
                    f"Candidate {candidate.buyer_id} failed at {stage.value}: {e}",
                    exc_info=not isinstance(e, DispatchFailure),
                    extra={
                        "event": "candidate.failed",
                        "stage": stage.value,
                        "error_type": type(e).__name__,
                    },
                )

        return outcome

    def _dispatch_with_retry(
        self,
        candidate: BuyerCandidate,
        prop: Property,
        alert_class: AlertClass,
        outcome: CandidateOutcome,
    ) -> DispatchOutcome:
        max_attempts = self.dispatch_config.max_retries + 1

        attempt = 1
        while True:
            try:
                return self.dispatcher.dispatch(candidate, prop, alert_class, outcome.match_result)
            except DispatchFailure as e:
                if attempt >= max_attempts:
                    raise
                delay = min(
                    self.dispatch_config.retry_initial_delay
                    * self.dispatch_config.retry_backoff_multiplier ** (attempt - 1),
                    MAX_RETRY_DELAY,
                )
                self.logger.warning(
                    f"Retrying dispatch (attempt {attempt + 1}/{max_attempts}) after {delay:.1f}s: {e}",
                    extra={"event": "dispatch.retry", "attempt": attempt + 1},
                )
                self._sleep(delay)
                attempt += 1

    def _aggregate(
        self,
        summary: RunSummary,
        outcome: CandidateOutcome,
        prop: Property,
        alert_class: AlertClass,
    ) -> None:
        summary.candidates_evaluated += 1
        if outcome.access_denied:
            summary.access_denied_count += 1
        if outcome.matched:
            summary.matches_found += 1
        if outcome.failure is not None:
            summary.failures.append(outcome.failure)

        if outcome.dispatch_status == STATUS_SENT:
            summary.alerts_sent += 1
            try:
                self.audit_sink.record_alert_sent(
                    outcome.buyer_id,
                    prop.id,
                    alert_class,
                    outcome.match_result.matched_criteria,
                )
            except Exception as e:
                self._log_audit_failure("alert_sent", e, buyer_id=outcome.buyer_id)
        elif outcome.dispatch_status == STATUS_DUPLICATE:
            summary.duplicates_skipped += 1
        elif outcome.dispatch_status == STATUS_FAILED:
            summary.alerts_failed += 1

    def _log_audit_failure(self, action: str, error: Exception, **fields) -> None:
        self.logger.warning(
            f"Failed to write {action} audit event: {error}",
            extra={
                "event": "audit.write_failed",
                "audit_action": action,
                "error_type": type(error).__name__,
                **fields,
            },
        )
