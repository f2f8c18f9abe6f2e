"""Run orchestration: property lookup, candidate evaluation and alert dispatch."""

from .exceptions import PropertyNotFound
from .models import BuyerFailure, CandidateOutcome, RunState, RunSummary, Stage
from .runner import RunCoordinator

__all__ = [
    "RunCoordinator",
    "RunSummary",
    "RunState",
    "Stage",
    "BuyerFailure",
    "CandidateOutcome",
    "PropertyNotFound",
]
