"""
Report triage controller
Turns raw submissions into scored reports, awards reputation points and
applies moderator overrides.
"""

import logging
import threading
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from src.core.constants import (
    FLAGGED_BELOW,
    LONG_DETAILS_BONUS,
    LONG_DETAILS_CHARS,
    PHOTO_POINTS_BONUS,
    PROMOTION_POINTS,
    SUBMISSION_POINTS_HIGH,
    SUBMISSION_POINTS_LOW,
    SUBMISSION_POINTS_MEDIUM,
    VALIDATED_THRESHOLD,
)
from src.crowdsource.errors import (
    AuthorizationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)
from src.crowdsource.report_handler import Report, ReportStatus, ReportStore, utc_now
from src.crowdsource.reputation import ReputationLedger
from src.crowdsource.scoring import ScoringEngine

logger = logging.getLogger(__name__)


class ModeratorAction(Enum):
    """Actions a moderator may apply to a report."""
    PROMOTE = "promote"
    FLAG = "flag"
    DELETE = "delete"


@dataclass
class Submission:
    """Raw submission as received from the reporting form."""
    reporter_name: str
    category: str
    details: str = ""
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    channel: Optional[str] = None
    contact_phone: Optional[str] = None
    has_photo: bool = False
    photo_ref: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Submission":
        """Create Submission from dictionary."""
        return cls(
            reporter_name=data.get("reporter_name") or "",
            category=data.get("category") or "",
            details=data.get("details") or "",
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            channel=data.get("channel"),
            contact_phone=data.get("contact_phone"),
            has_photo=bool(data.get("has_photo")) or bool(data.get("photo_ref")),
            photo_ref=data.get("photo_ref"),
        )


@dataclass
class SubmissionResult:
    """Created report and the points its reporter earned."""
    report: Report
    points_awarded: int


@dataclass
class ModerationResult:
    """Outcome of a moderator action."""
    report: Report
    action: ModeratorAction
    previous_status: ReportStatus
    points_awarded: int = 0


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def submission_points(confidence: int, details_length: int, has_photo: bool) -> int:
    """Reputation points earned by a new submission."""
    if confidence >= VALIDATED_THRESHOLD:
        base = SUBMISSION_POINTS_HIGH
    elif confidence >= FLAGGED_BELOW:
        base = SUBMISSION_POINTS_MEDIUM
    else:
        base = SUBMISSION_POINTS_LOW

    bonus = 0
    if details_length >= LONG_DETAILS_CHARS:
        bonus += LONG_DETAILS_BONUS
    if has_photo:
        bonus += PHOTO_POINTS_BONUS
    return base + bonus


def generate_report_id() -> str:
    return uuid.uuid4().hex[:12].upper()


class TriageController:
    """
    Coordinates the scoring engine, report store and reputation ledger.

    Each public method holds the controller lock for its whole duration, so
    concurrent callers never observe half of a submit or moderate call.
    Moderator authorization is decided by the caller and passed in.
    """

    def __init__(
        self,
        store: ReportStore,
        ledger: ReputationLedger,
        engine: Optional[ScoringEngine] = None,
        repeat_promotion_rewards: bool = False,
        id_factory=generate_report_id,
        clock=utc_now
    ):
        """
        Initialize triage controller.

        Args:
            store: Report store
            ledger: Reputation ledger
            engine: Scoring engine (default heuristic when None)
            repeat_promotion_rewards: Award promotion points on every promote
                call, even when the report is already validated
            id_factory: Callable returning a new report id
            clock: Callable returning the submission timestamp
        """
        self.store = store
        self.ledger = ledger
        self.engine = engine or ScoringEngine()
        self.repeat_promotion_rewards = repeat_promotion_rewards
        self._id_factory = id_factory
        self._clock = clock
        self._lock = threading.RLock()

        logger.info("TriageController initialized")

    def submit(self, submission: Submission) -> SubmissionResult:
        """
        Score and store a new report, then reward its reporter.

        If the reward cannot be persisted the report is withdrawn again, so a
        failed call leaves neither a report nor points behind.

        Raises:
            ValidationError: If reporter name or category is empty
            DuplicateIdError: If the generated id collides with a stored report
            PersistenceError: If the storage backend fails
        """
        reporter_name = (submission.reporter_name or "").strip()
        category = (submission.category or "").strip()
        details = (submission.details or "").strip()

        if not reporter_name or not category:
            raise ValidationError("Please enter your name and choose a category.")

        has_photo = bool(submission.has_photo or submission.photo_ref)
        latitude = _clean(submission.latitude)
        longitude = _clean(submission.longitude)

        scoring = self.engine.evaluate(
            details=details,
            has_photo=has_photo,
            category=category,
            latitude=latitude,
            longitude=longitude,
        )

        with self._lock:
            report = Report(
                id=self._id_factory(),
                submitted_at=self._clock(),
                reporter_name=reporter_name,
                category=category,
                details=details,
                latitude=latitude,
                longitude=longitude,
                has_photo=has_photo,
                photo_ref=submission.photo_ref,
                channel=_clean(submission.channel),
                contact_phone=_clean(submission.contact_phone),
                ai_confidence=scoring.confidence,
                ai_flags=tuple(scoring.flags),
                status=scoring.status,
            )
            self.store.insert(report)

            points = submission_points(scoring.confidence, len(details), has_photo)
            try:
                self.ledger.award(reporter_name, points)
            except PersistenceError:
                logger.error(f"Award failed for report {report.id}; withdrawing it")
                self.store.delete(report.id)
                raise

        logger.info(
            f"New report {report.id} from {reporter_name!r}: "
            f"confidence={report.ai_confidence} status={report.status.value} points={points}"
        )

        return SubmissionResult(report=report, points_awarded=points)

    def moderate(
        self,
        report_id: str,
        action,
        authorized: bool = False
    ) -> ModerationResult:
        """
        Apply a moderator action to a report.

        A promotion whose reward cannot be persisted restores the previous
        status before the error propagates.

        Args:
            report_id: Report ID
            action: ModeratorAction or its string value
            authorized: Result of the caller's moderator capability check

        Raises:
            AuthorizationError: If the caller is not a moderator
            ValidationError: If the action is unknown
            NotFoundError: If the report does not exist
            PersistenceError: If the storage backend fails
        """
        if not authorized:
            raise AuthorizationError("Only moderators can moderate reports.")

        try:
            action = ModeratorAction(action)
        except ValueError:
            raise ValidationError(f"Unknown moderator action: {action!r}")

        with self._lock:
            report = self.store.find(report_id)
            if report is None:
                raise NotFoundError(report_id)

            previous_status = report.status
            points = 0

            if action == ModeratorAction.PROMOTE:
                self.store.update_status(report_id, ReportStatus.VALIDATED)
                if self.repeat_promotion_rewards or previous_status != ReportStatus.VALIDATED:
                    points = PROMOTION_POINTS
                    try:
                        self.ledger.award(report.reporter_name, points)
                    except PersistenceError:
                        logger.error(f"Award failed for report {report_id}; restoring {previous_status.value}")
                        self.store.update_status(report_id, previous_status)
                        raise
            elif action == ModeratorAction.FLAG:
                self.store.update_status(report_id, ReportStatus.FLAGGED)
            else:
                self.store.delete(report_id)

        logger.info(
            f"Moderator {action.value} on report {report_id} "
            f"(was {previous_status.value}, points={points})"
        )

        return ModerationResult(
            report=report,
            action=action,
            previous_status=previous_status,
            points_awarded=points,
        )

    def list_reports(self):
        return self.store.list_sorted()

    def leaderboard(self, limit: Optional[int] = None):
        return self.ledger.top_entries(limit)


def build_controller(
    storage_backend: Optional[Any] = None,
    repeat_promotion_rewards: bool = False
) -> TriageController:
    """
    Create a controller from the backend's stored snapshot.

    Args:
        storage_backend: Backend providing load_reports/load_scores and the
            matching persist methods. Without one, state is kept in memory only.
        repeat_promotion_rewards: See TriageController

    Raises:
        PersistenceError: If the snapshot cannot be loaded
    """
    reports = []
    scores = {}
    if storage_backend is not None:
        reports = [Report.from_dict(data) for data in storage_backend.load_reports()]
        scores = storage_backend.load_scores()

    store = ReportStore(reports, storage_backend=storage_backend)
    ledger = ReputationLedger(scores, storage_backend=storage_backend)
    return TriageController(
        store,
        ledger,
        repeat_promotion_rewards=repeat_promotion_rewards,
    )
