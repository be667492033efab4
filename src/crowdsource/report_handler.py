"""
Incident report records and the in-memory report store
Keeps submitted reports keyed by id and mirrors every change to the
storage backend.
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple
from dataclasses import dataclass, field
from enum import Enum

from src.crowdsource.errors import DuplicateIdError, NotFoundError, PersistenceError

logger = logging.getLogger(__name__)


class ReportStatus(Enum):
    """Triage status of a report."""
    SUBMITTED = "Submitted"
    VALIDATED = "Validated"
    FLAGGED = "Flagged"


@dataclass
class Report:
    """
    Incident report submitted by a community member.

    Everything except ``status`` is fixed at creation. ``ai_confidence`` and
    ``ai_flags`` record the automatic assessment of the original submission.
    """
    id: str
    submitted_at: datetime
    reporter_name: str
    category: str
    ai_confidence: int
    status: ReportStatus

    details: str = ""
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    has_photo: bool = False
    photo_ref: Optional[str] = None

    # Metadata, not used in scoring
    channel: Optional[str] = None
    contact_phone: Optional[str] = None

    ai_flags: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "submitted_at": self.submitted_at.isoformat(),
            "reporter_name": self.reporter_name,
            "category": self.category,
            "details": self.details,
            "latitude": self.latitude,
            "longitude": self.longitude,
            "has_photo": self.has_photo,
            "photo_ref": self.photo_ref,
            "channel": self.channel,
            "contact_phone": self.contact_phone,
            "ai_confidence": self.ai_confidence,
            "ai_flags": list(self.ai_flags),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Report":
        """Create Report from dictionary."""
        submitted_at = data["submitted_at"]
        if isinstance(submitted_at, str):
            submitted_at = datetime.fromisoformat(submitted_at)
        if submitted_at.tzinfo is None:
            submitted_at = submitted_at.replace(tzinfo=timezone.utc)
        return cls(
            id=data["id"],
            submitted_at=submitted_at,
            reporter_name=data["reporter_name"],
            category=data["category"],
            details=data.get("details") or "",
            latitude=data.get("latitude"),
            longitude=data.get("longitude"),
            has_photo=bool(data.get("has_photo", False)),
            photo_ref=data.get("photo_ref"),
            channel=data.get("channel"),
            contact_phone=data.get("contact_phone"),
            ai_confidence=int(data["ai_confidence"]),
            ai_flags=tuple(data.get("ai_flags") or ()),
            status=ReportStatus(data["status"]),
        )


class ReportStore:
    """
    Ordered collection of reports keyed by id.

    Every mutation is followed by ``persist_reports`` on the storage backend.
    If persisting fails the in-memory change is undone and the
    PersistenceError propagates.
    """

    def __init__(
        self,
        reports: Optional[List[Report]] = None,
        storage_backend: Optional[Any] = None
    ):
        """
        Initialize report store.

        Args:
            reports: Snapshot of previously stored reports
            storage_backend: Backend with a ``persist_reports(list)`` method
        """
        self.storage = storage_backend
        self._reports: Dict[str, Report] = {}
        self._lock = threading.RLock()

        for report in reports or []:
            if report.id in self._reports:
                raise DuplicateIdError(report.id)
            self._reports[report.id] = report

        logger.info(f"ReportStore initialized with {len(self._reports)} reports")

    def __len__(self) -> int:
        with self._lock:
            return len(self._reports)

    def __contains__(self, report_id: object) -> bool:
        with self._lock:
            return report_id in self._reports

    def insert(self, report: Report) -> Report:
        """
        Add a new report.

        Raises:
            DuplicateIdError: If a report with the same id is stored
        """
        with self._lock:
            if report.id in self._reports:
                logger.error(f"Refusing to insert duplicate report id {report.id}")
                raise DuplicateIdError(report.id)

            self._reports[report.id] = report
            try:
                self._persist()
            except PersistenceError:
                del self._reports[report.id]
                raise

            logger.info(f"Report {report.id} stored ({report.status.value})")
            return report

    def find(self, report_id: str) -> Optional[Report]:
        """Get report by ID."""
        with self._lock:
            return self._reports.get(report_id)

    def update_status(self, report_id: str, new_status: ReportStatus) -> Report:
        """
        Set the status of a stored report.

        Raises:
            NotFoundError: If the report does not exist
        """
        with self._lock:
            report = self._reports.get(report_id)
            if report is None:
                raise NotFoundError(report_id)

            old_status = report.status
            report.status = new_status
            try:
                self._persist()
            except PersistenceError:
                report.status = old_status
                raise

            logger.info(f"Report {report_id} status: {old_status.value} -> {new_status.value}")
            return report

    def delete(self, report_id: str) -> Report:
        """
        Permanently remove a report.

        Raises:
            NotFoundError: If the report does not exist
        """
        with self._lock:
            if report_id not in self._reports:
                raise NotFoundError(report_id)

            # Rebuild on failure so the original insertion order survives
            previous = dict(self._reports)
            report = self._reports.pop(report_id)
            try:
                self._persist()
            except PersistenceError:
                self._reports = previous
                raise

            logger.info(f"Report {report_id} deleted")
            return report

    def list_sorted(self) -> List[Report]:
        """All reports, most recent first. Equal timestamps keep insertion order."""
        with self._lock:
            return sorted(
                self._reports.values(),
                key=lambda r: r.submitted_at,
                reverse=True,
            )

    def get_statistics(self) -> Dict[str, Any]:
        """Get report statistics."""
        with self._lock:
            reports = list(self._reports.values())

        by_status = {status.value: 0 for status in ReportStatus}
        with_photo = 0
        total_confidence = 0

        for report in reports:
            by_status[report.status.value] += 1
            total_confidence += report.ai_confidence
            if report.has_photo:
                with_photo += 1

        total = len(reports)
        return {
            "total_reports": total,
            "by_status": by_status,
            "with_photo": with_photo,
            "average_confidence": round(total_confidence / total, 1) if total > 0 else 0.0,
        }

    def _persist(self) -> None:
        if self.storage is None:
            return
        self.storage.persist_reports([r.to_dict() for r in self._reports.values()])


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
