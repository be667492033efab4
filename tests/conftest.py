"""
Pytest configuration and fixtures
"""
import pytest
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from src.crowdsource.report_handler import ReportStore
from src.crowdsource.reputation import ReputationLedger
from src.crowdsource.triage import Submission, TriageController
from src.database.repository import InMemoryBackend


class StepClock:
    """Deterministic clock advancing one minute per call."""

    def __init__(self, start=None):
        self.current = start or datetime(2026, 3, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self):
        value = self.current
        self.current = self.current + timedelta(minutes=1)
        return value


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def backend():
    """Empty in-memory storage backend."""
    return InMemoryBackend()


@pytest.fixture
def controller(backend, clock):
    """Controller wired to an in-memory backend with a deterministic clock."""
    store = ReportStore(storage_backend=backend)
    ledger = ReputationLedger(storage_backend=backend)
    return TriageController(store, ledger, clock=clock)


@pytest.fixture
def strong_submission():
    """Detailed report with photo, keywords and coordinates (confidence 81)."""
    return Submission(
        reporter_name="Alice",
        category="Dumping",
        details="Saw a bulldozer illegally dumping oil near the shoreline, filmed for 2 minutes",
        latitude="10.5",
        longitude="76.2",
        channel="web",
        has_photo=True,
    )


@pytest.fixture
def medium_submission():
    """Short keyword report without coordinates or photo (confidence 51)."""
    return Submission(
        reporter_name="Bongani",
        category="Cutting",
        details="Mangroves cut near the jetty",
    )


@pytest.fixture
def weak_submission():
    """Empty report: no details, photo or coordinates (confidence 40)."""
    return Submission(reporter_name="Chen", category="Other")


@pytest.fixture
def sample_report():
    """Stored report dictionary as persisted by the store."""
    return {
        "id": "A1B2C3D4E5F6",
        "submitted_at": "2026-02-14T09:30:00+00:00",
        "reporter_name": "Dewi",
        "category": "Reclamation",
        "details": "Backhoe filling the lagoon edge",
        "latitude": "-6.12",
        "longitude": "106.8",
        "has_photo": False,
        "photo_ref": None,
        "channel": "sms",
        "contact_phone": "+62 811 000",
        "ai_confidence": 54,
        "ai_flags": ["No photo attached"],
        "status": "Submitted",
    }
