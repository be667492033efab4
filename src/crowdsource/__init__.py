"""
MangroveWatch - Crowdsource Module
Scores community incident reports, triages them and tracks contributor reputation.
"""

from src.crowdsource.errors import (
    TriageError,
    ValidationError,
    NotFoundError,
    DuplicateIdError,
    PersistenceError,
    AuthorizationError,
)
from src.crowdsource.report_handler import (
    Report,
    ReportStatus,
    ReportStore,
)
from src.crowdsource.scoring import (
    ScoringEngine,
    ScoringResult,
)
from src.crowdsource.reputation import (
    ReputationLedger,
    badge_for,
    badge_progress,
)
from src.crowdsource.triage import (
    TriageController,
    Submission,
    SubmissionResult,
    ModeratorAction,
    ModerationResult,
    build_controller,
)

__all__ = [
    # Errors
    "TriageError",
    "ValidationError",
    "NotFoundError",
    "DuplicateIdError",
    "PersistenceError",
    "AuthorizationError",
    # Reports
    "Report",
    "ReportStatus",
    "ReportStore",
    # Scoring
    "ScoringEngine",
    "ScoringResult",
    # Reputation
    "ReputationLedger",
    "badge_for",
    "badge_progress",
    # Triage
    "TriageController",
    "Submission",
    "SubmissionResult",
    "ModeratorAction",
    "ModerationResult",
    "build_controller",
]
