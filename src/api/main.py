"""
MangroveWatch - REST API

FastAPI application for submitting community incident reports, browsing
the triaged feed and leaderboard, and moderating reports.

Run with: uvicorn src.api.main:app --reload
"""

import logging
import threading
from datetime import datetime, timezone
from typing import Optional, List

from fastapi import FastAPI, HTTPException, Query, File, UploadFile, Form, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, Field

from src.core.config import settings
from src.core.logging import setup_logging
from src.crowdsource.errors import (
    AuthorizationError,
    DuplicateIdError,
    NotFoundError,
    PersistenceError,
    TriageError,
    ValidationError,
)
from src.crowdsource.query import (
    confidence_band,
    filter_reports,
    format_coordinate,
    leaderboard,
    osm_link,
)
from src.crowdsource.report_handler import Report, ReportStatus
from src.crowdsource.triage import ModeratorAction, Submission, TriageController, build_controller
from src.api.security import is_moderator
from src.visualization.map_generator import create_reports_map

setup_logging()
logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

# FastAPI app
app = FastAPI(
    title="MangroveWatch",
    description="Community incident reporting with automatic triage and contributor reputation",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Pydantic Models
# ============================================================================

class HealthResponse(BaseModel):
    """API health check response."""
    status: str
    version: str
    timestamp: str
    reports: int
    contributors: int


class ReportCreateRequest(BaseModel):
    """Request to submit an incident report."""
    reporter_name: str = ""
    category: str = ""
    details: str = ""
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    channel: Optional[str] = None
    contact_phone: Optional[str] = None
    has_photo: bool = False


class ReportResponse(BaseModel):
    """Incident report response."""
    id: str
    submitted_at: str
    reporter_name: str
    category: str
    details: str
    latitude: Optional[str]
    longitude: Optional[str]
    latitude_display: str
    longitude_display: str
    map_url: Optional[str]
    has_photo: bool
    channel: Optional[str]
    ai_confidence: int
    confidence_band: str
    ai_flags: List[str]
    status: str


class SubmissionResponse(BaseModel):
    """Created report plus the points earned."""
    report: ReportResponse
    points_awarded: int
    message: str


class ReportListResponse(BaseModel):
    """List of incident reports."""
    count: int
    total: int
    reports: List[ReportResponse]


class ReportStatsResponse(BaseModel):
    """Report statistics."""
    total_reports: int
    by_status: dict
    with_photo: int
    average_confidence: float


class ModerationRequest(BaseModel):
    """Moderator action on a report."""
    action: str = Field(..., pattern="^(promote|flag|delete)$")


class ModerationResponse(BaseModel):
    """Outcome of a moderator action."""
    id: str
    action: str
    previous_status: str
    status: Optional[str]
    deleted: bool
    points_awarded: int


class LeaderboardEntry(BaseModel):
    """Single leaderboard row."""
    rank: int
    name: str
    points: int
    badge: str
    next_badge: Optional[str]
    points_to_next: Optional[int]


class LeaderboardResponse(BaseModel):
    """Contributor leaderboard."""
    count: int
    entries: List[LeaderboardEntry]


# ============================================================================
# Helper Functions
# ============================================================================

_controller: Optional[TriageController] = None
_controller_lock = threading.Lock()


def get_controller() -> TriageController:
    """Get the triage controller, loading the stored snapshot on first use."""
    global _controller
    if _controller is None:
        with _controller_lock:
            if _controller is None:
                from src.database import SnapshotRepository, init_db

                backend = SnapshotRepository(init_db(settings.database_url))
                _controller = build_controller(
                    backend,
                    repeat_promotion_rewards=settings.repeat_promotion_rewards,
                )
    return _controller


def _to_response(report: Report) -> ReportResponse:
    return ReportResponse(
        id=report.id,
        submitted_at=report.submitted_at.isoformat(),
        reporter_name=report.reporter_name,
        category=report.category,
        details=report.details,
        latitude=report.latitude,
        longitude=report.longitude,
        latitude_display=format_coordinate(report.latitude),
        longitude_display=format_coordinate(report.longitude),
        map_url=osm_link(report.latitude, report.longitude),
        has_photo=report.has_photo,
        channel=report.channel,
        ai_confidence=report.ai_confidence,
        confidence_band=confidence_band(report.ai_confidence),
        ai_flags=list(report.ai_flags),
        status=report.status.value,
    )


def _http_error(exc: TriageError) -> HTTPException:
    """Map a triage engine error to an HTTP error."""
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail="Report not found")
    if isinstance(exc, AuthorizationError):
        return HTTPException(status_code=403, detail=str(exc))
    if isinstance(exc, PersistenceError):
        logger.error(f"Storage failure: {exc}")
        return HTTPException(status_code=503, detail="Storage unavailable")
    if isinstance(exc, DuplicateIdError):
        logger.error(f"Report id collision: {exc}")
    return HTTPException(status_code=500, detail="Internal error")


def _submit(controller: TriageController, submission: Submission) -> SubmissionResponse:
    try:
        result = controller.submit(submission)
    except TriageError as e:
        raise _http_error(e)

    report = result.report
    return SubmissionResponse(
        report=_to_response(report),
        points_awarded=result.points_awarded,
        message=(
            f"Report submitted. AI confidence: {report.ai_confidence}%. "
            f"You earned {result.points_awarded} points."
        ),
    )


# ============================================================================
# System Routes
# ============================================================================

@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check(controller: TriageController = Depends(get_controller)):
    """API health check."""
    return HealthResponse(
        status="healthy",
        version=API_VERSION,
        timestamp=datetime.now(timezone.utc).isoformat(),
        reports=len(controller.store),
        contributors=len(controller.ledger),
    )


# ============================================================================
# Report Routes
# ============================================================================

@app.post("/api/v1/reports", response_model=SubmissionResponse, status_code=201, tags=["Reports"])
def create_report(
    request: ReportCreateRequest,
    controller: TriageController = Depends(get_controller),
):
    """
    Submit an incident report.

    The report is scored immediately; its confidence decides whether it
    starts as Validated, Submitted or Flagged.
    """
    submission = Submission(
        reporter_name=request.reporter_name,
        category=request.category,
        details=request.details,
        latitude=request.latitude,
        longitude=request.longitude,
        channel=request.channel,
        contact_phone=request.contact_phone,
        has_photo=request.has_photo,
    )
    return _submit(controller, submission)


@app.post("/api/v1/reports/with-photo", response_model=SubmissionResponse, status_code=201, tags=["Reports"])
def create_report_with_photo(
    reporter_name: str = Form(""),
    category: str = Form(""),
    details: str = Form(""),
    latitude: Optional[str] = Form(None),
    longitude: Optional[str] = Form(None),
    channel: Optional[str] = Form(None),
    contact_phone: Optional[str] = Form(None),
    photo: Optional[UploadFile] = File(None),
    controller: TriageController = Depends(get_controller),
):
    """
    Submit an incident report with a photo attachment.

    The photo content is not analysed; attaching one only counts as evidence.
    """
    photo_ref = photo.filename if photo is not None and photo.filename else None
    submission = Submission(
        reporter_name=reporter_name,
        category=category,
        details=details,
        latitude=latitude,
        longitude=longitude,
        channel=channel,
        contact_phone=contact_phone,
        has_photo=photo_ref is not None,
        photo_ref=photo_ref,
    )
    return _submit(controller, submission)


@app.get("/api/v1/reports", response_model=ReportListResponse, tags=["Reports"])
def list_reports(
    status: Optional[str] = Query(None, description="Exact status: Submitted, Validated or Flagged"),
    q: Optional[str] = Query(None, description="Text matched against reporter, category and status"),
    limit: int = Query(default=50, ge=1, le=200),
    controller: TriageController = Depends(get_controller),
):
    """List reports, most recent first, with optional filters."""
    if status is not None and status not in {s.value for s in ReportStatus}:
        raise HTTPException(status_code=422, detail=f"Unknown status: {status}")

    reports = controller.list_reports()
    matches = filter_reports(reports, status=status, text=q)

    return ReportListResponse(
        count=min(len(matches), limit),
        total=len(reports),
        reports=[_to_response(r) for r in matches[:limit]],
    )


@app.get("/api/v1/reports/stats", response_model=ReportStatsResponse, tags=["Reports"])
def get_report_statistics(controller: TriageController = Depends(get_controller)):
    """Get report statistics."""
    return ReportStatsResponse(**controller.store.get_statistics())


@app.get("/api/v1/reports/{report_id}", response_model=ReportResponse, tags=["Reports"])
def get_report(report_id: str, controller: TriageController = Depends(get_controller)):
    """Get a specific report by ID."""
    report = controller.store.find(report_id)

    if not report:
        raise HTTPException(status_code=404, detail="Report not found")

    return _to_response(report)


@app.post("/api/v1/reports/{report_id}/moderate", response_model=ModerationResponse, tags=["Moderation"])
def moderate_report(
    report_id: str,
    request: ModerationRequest,
    authorized: bool = Depends(is_moderator),
    controller: TriageController = Depends(get_controller),
):
    """
    Promote, flag or delete a report.

    Requires the ``X-Moderator-Token`` header.
    """
    try:
        result = controller.moderate(report_id, request.action, authorized=authorized)
    except TriageError as e:
        raise _http_error(e)

    deleted = result.action == ModeratorAction.DELETE
    return ModerationResponse(
        id=report_id,
        action=result.action.value,
        previous_status=result.previous_status.value,
        status=None if deleted else result.report.status.value,
        deleted=deleted,
        points_awarded=result.points_awarded,
    )


# ============================================================================
# Leaderboard Routes
# ============================================================================

@app.get("/api/v1/leaderboard", response_model=LeaderboardResponse, tags=["Leaderboard"])
def get_leaderboard(
    limit: int = Query(default=settings.leaderboard_limit, ge=1, le=100),
    controller: TriageController = Depends(get_controller),
):
    """Top contributors by points, with badges."""
    rows = leaderboard(controller.ledger, limit)
    return LeaderboardResponse(
        count=len(rows),
        entries=[LeaderboardEntry(**row) for row in rows],
    )


# ============================================================================
# Map Routes
# ============================================================================

@app.get("/api/v1/map/reports", response_class=HTMLResponse, tags=["Map"])
def reports_map(
    status: Optional[str] = Query(None),
    controller: TriageController = Depends(get_controller),
):
    """Interactive map of located reports."""
    reports = filter_reports(controller.list_reports(), status=status)
    report_map = create_reports_map(reports)
    return HTMLResponse(content=report_map.get_root().render())
