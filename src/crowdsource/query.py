"""
Read-side helpers for rendering the report feed and leaderboard.
"""

from typing import Any, Dict, Iterable, List, Optional

from src.core.constants import COORDINATE_PLACEHOLDER, FLAGGED_BELOW, VALIDATED_THRESHOLD
from src.crowdsource.report_handler import Report, ReportStatus
from src.crowdsource.reputation import ReputationLedger, badge_progress
from src.crowdsource.scoring import parse_coordinate


def filter_reports(
    reports: Iterable[Report],
    status: Optional[str] = None,
    text: Optional[str] = None
) -> List[Report]:
    """
    Filter reports for the feed.

    Args:
        reports: Reports, already in display order
        status: Exact status value to keep (e.g. "Flagged")
        text: Case-insensitive substring matched against reporter,
            category and status

    Returns:
        Matching reports in their original order
    """
    query = (text or "").strip().lower()
    if isinstance(status, ReportStatus):
        status = status.value

    matches = []
    for report in reports:
        if status and report.status.value != status:
            continue
        if query and not (
            query in report.reporter_name.lower()
            or query in report.category.lower()
            or query in report.status.value.lower()
        ):
            continue
        matches.append(report)
    return matches


def confidence_band(confidence: int) -> str:
    """Display band for a confidence score: ok, warn or bad."""
    if confidence >= VALIDATED_THRESHOLD:
        return "ok"
    elif confidence >= FLAGGED_BELOW:
        return "warn"
    return "bad"


def format_coordinate(value: Any) -> str:
    number = parse_coordinate(value)
    if number is None:
        return COORDINATE_PLACEHOLDER
    return f"{number:.5f}"


def osm_link(latitude: Any, longitude: Any, zoom: int = 14) -> Optional[str]:
    """OpenStreetMap link with a marker at the coordinates, or None if either is missing."""
    lat = parse_coordinate(latitude)
    lng = parse_coordinate(longitude)
    if lat is None or lng is None:
        return None
    return f"https://www.openstreetmap.org/?mlat={lat}&mlon={lng}#map={zoom}/{lat}/{lng}"


def leaderboard(ledger: ReputationLedger, limit: Optional[int] = 20) -> List[Dict[str, Any]]:
    """Ranked leaderboard rows with the current badge and the next one to earn."""
    rows = []
    for rank, (name, points) in enumerate(ledger.top_entries(limit), start=1):
        progress = badge_progress(points)
        rows.append({
            "rank": rank,
            "name": name,
            "points": points,
            "badge": progress["current"],
            "next_badge": progress["next"],
            "points_to_next": progress["points_to_next"],
        })
    return rows
