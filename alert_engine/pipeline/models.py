"""Data models for run execution tracking and reporting."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from alert_engine.matching.models import MatchResult


class RunState(str, Enum):
    INIT = "init"
    LOADING_CANDIDATES = "loading_candidates"
    EVALUATING = "evaluating"
    DONE = "done"
    FAILED = "failed"


class Stage(str, Enum):
    """Per-candidate processing stage, recorded on failures."""

    ACCESS = "access"
    NORMALIZE = "normalize"
    SCORE = "score"
    DISPATCH = "dispatch"


@dataclass
class BuyerFailure:
    """One candidate that failed during a run.

    Attributes:
        buyer_id: Candidate buyer
        stage: Stage the failure happened in
        error_type: Exception class name
        message: Error message
    """

    buyer_id: str
    stage: Stage
    error_type: str
    message: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "buyer_id": self.buyer_id,
            "stage": self.stage.value,
            "error_type": self.error_type,
            "message": self.message,
        }


@dataclass
class CandidateOutcome:
    """What happened to a single candidate; aggregated by the coordinator."""

    buyer_id: str
    access_denied: bool = False
    skipped: bool = False
    match_result: Optional[MatchResult] = None
    dispatch_status: Optional[str] = None
    failure: Optional[BuyerFailure] = None

    @property
    def matched(self) -> bool:
        return self.match_result is not None and self.match_result.is_match


@dataclass
class RunSummary:
    """
    Aggregate results of processing one property against all candidates.

    Attributes:
        property_id: Property the run was for
        state: Terminal state (DONE or FAILED)
        success: True when the run reached DONE
        error: Run-level error message for FAILED runs
        candidates_evaluated: Candidates examined (including skipped ones)
        access_denied_count: Candidates denied by the eligibility gate
        matches_found: Candidates whose criteria matched the property
        alerts_sent: Alerts delivered in this run
        alerts_failed: Alerts whose delivery failed after all attempts
        duplicates_skipped: Matches skipped because an alert already existed
        failures: Per-candidate failures
        run_id: Identifier used in the log context
        started_at: UTC start time
        finished_at: UTC finish time
        duration_seconds: Wall-clock duration
    """

    property_id: str
    run_id: str
    started_at: datetime
    state: RunState = RunState.INIT
    success: bool = False
    error: Optional[str] = None
    candidates_evaluated: int = 0
    access_denied_count: int = 0
    matches_found: int = 0
    alerts_sent: int = 0
    alerts_failed: int = 0
    duplicates_skipped: int = 0
    failures: List[BuyerFailure] = field(default_factory=list)
    finished_at: Optional[datetime] = None
    duration_seconds: float = 0.0

    def finish(self, state: RunState, finished_at: datetime, error: Optional[str] = None) -> None:
        self.state = state
        self.success = state is RunState.DONE
        self.error = error
        self.finished_at = finished_at
        self.duration_seconds = (finished_at - self.started_at).total_seconds()

    def to_audit_details(self) -> Dict[str, Any]:
        """Details payload of the run-summary audit event."""
        return {
            "run_id": self.run_id,
            "matches_found": self.matches_found,
            "alerts_sent": self.alerts_sent,
            "alerts_failed": self.alerts_failed,
            "access_denied_count": self.access_denied_count,
            "candidates_evaluated": self.candidates_evaluated,
            "duplicates_skipped": self.duplicates_skipped,
            "failure_count": len(self.failures),
            "duration_seconds": round(self.duration_seconds, 3),
        }
