"""
Tests for API endpoints
"""
import threading
import time
import pytest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch, MagicMock

from fastapi.testclient import TestClient

import sys
sys.path.insert(0, '.')

import src.api.main as api_main
from src.api.main import app, get_controller
from src.api.security import hash_token, is_moderator, token_matches
from src.crowdsource.errors import PersistenceError
from src.crowdsource.report_handler import ReportStore
from src.crowdsource.reputation import ReputationLedger
from src.crowdsource.triage import TriageController

ALICE = {
    "reporter_name": "Alice",
    "category": "Dumping",
    "details": "Saw a bulldozer illegally dumping oil near the shoreline, filmed for 2 minutes",
    "latitude": "10.5",
    "longitude": "76.2",
    "has_photo": True,
}


@pytest.fixture
def client(controller):
    app.dependency_overrides[get_controller] = lambda: controller
    app.dependency_overrides[is_moderator] = lambda: False
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def moderator_client(client):
    app.dependency_overrides[is_moderator] = lambda: True
    return client


class TestSystemEndpoints:
    """Test suite for system endpoints."""

    def test_health(self, client):
        client.post("/api/v1/reports", json=ALICE)

        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["reports"] == 1
        assert data["contributors"] == 1


class TestReportEndpoints:
    """Test suite for report submission and listing."""

    def test_submit_report(self, client):
        response = client.post("/api/v1/reports", json=ALICE)

        assert response.status_code == 201
        data = response.json()
        assert data["points_awarded"] == 15
        assert data["report"]["ai_confidence"] == 81
        assert data["report"]["status"] == "Validated"
        assert data["report"]["confidence_band"] == "ok"
        assert data["report"]["latitude_display"] == "10.50000"
        assert data["report"]["map_url"].startswith("https://www.openstreetmap.org/?mlat=10.5")
        assert "81%" in data["message"]

    def test_submit_without_coordinates(self, client):
        response = client.post("/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"})

        report = response.json()["report"]
        assert report["status"] == "Flagged"
        assert report["latitude_display"] == "—"
        assert report["map_url"] is None
        assert len(report["ai_flags"]) == 3

    def test_submit_missing_name(self, client, controller):
        response = client.post("/api/v1/reports", json={"reporter_name": " ", "category": "Other"})

        assert response.status_code == 422
        assert response.json()["detail"] == "Please enter your name and choose a category."
        assert len(controller.store) == 0

    def test_submit_with_photo(self, client):
        form = {key: str(value) for key, value in ALICE.items() if key != "has_photo"}

        response = client.post(
            "/api/v1/reports/with-photo",
            data=form,
            files={"photo": ("mangrove.jpg", b"\xff\xd8\xff\xe0", "image/jpeg")},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["report"]["has_photo"] is True
        assert data["report"]["ai_confidence"] == 81

    def test_submit_form_without_photo(self, client):
        response = client.post(
            "/api/v1/reports/with-photo",
            data={"reporter_name": "Chen", "category": "Other"},
        )

        assert response.status_code == 201
        assert response.json()["report"]["has_photo"] is False

    def test_storage_failure(self, client, clock):
        backend = MagicMock()
        backend.persist_reports.side_effect = PersistenceError("offline")
        failing = TriageController(
            ReportStore(storage_backend=backend),
            ReputationLedger(storage_backend=backend),
            clock=clock,
        )
        app.dependency_overrides[get_controller] = lambda: failing

        response = client.post("/api/v1/reports", json=ALICE)

        assert response.status_code == 503

    def test_list_reports(self, client):
        client.post("/api/v1/reports", json=ALICE)
        client.post("/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"})

        response = client.get("/api/v1/reports")

        data = response.json()
        assert data["count"] == 2
        assert [r["reporter_name"] for r in data["reports"]] == ["Chen", "Alice"]

    def test_list_reports_filters(self, client):
        client.post("/api/v1/reports", json=ALICE)
        client.post("/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"})

        flagged = client.get("/api/v1/reports", params={"status": "Flagged"}).json()
        by_text = client.get("/api/v1/reports", params={"q": "dump"}).json()

        assert [r["reporter_name"] for r in flagged["reports"]] == ["Chen"]
        assert flagged["total"] == 2
        assert [r["reporter_name"] for r in by_text["reports"]] == ["Alice"]

    def test_list_reports_unknown_status(self, client):
        response = client.get("/api/v1/reports", params={"status": "Archived"})
        assert response.status_code == 422

    def test_get_report(self, client):
        report_id = client.post("/api/v1/reports", json=ALICE).json()["report"]["id"]

        response = client.get(f"/api/v1/reports/{report_id}")

        assert response.status_code == 200
        assert response.json()["id"] == report_id

    def test_get_missing_report(self, client):
        assert client.get("/api/v1/reports/NOPE").status_code == 404

    def test_stats(self, client):
        client.post("/api/v1/reports", json=ALICE)
        client.post("/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"})

        stats = client.get("/api/v1/reports/stats").json()

        assert stats["total_reports"] == 2
        assert stats["by_status"]["Flagged"] == 1
        assert stats["average_confidence"] == 60.5


class TestModerationEndpoints:
    """Test suite for moderator actions over HTTP."""

    def test_requires_moderator(self, client):
        report_id = client.post("/api/v1/reports", json=ALICE).json()["report"]["id"]

        response = client.post(f"/api/v1/reports/{report_id}/moderate", json={"action": "flag"})

        assert response.status_code == 403

    def test_promote(self, moderator_client):
        report_id = moderator_client.post(
            "/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"}
        ).json()["report"]["id"]

        response = moderator_client.post(
            f"/api/v1/reports/{report_id}/moderate", json={"action": "promote"}
        )

        data = response.json()
        assert response.status_code == 200
        assert data["previous_status"] == "Flagged"
        assert data["status"] == "Validated"
        assert data["points_awarded"] == 5

    def test_delete(self, moderator_client):
        report_id = moderator_client.post("/api/v1/reports", json=ALICE).json()["report"]["id"]

        data = moderator_client.post(
            f"/api/v1/reports/{report_id}/moderate", json={"action": "delete"}
        ).json()

        assert data["deleted"] is True
        assert data["status"] is None
        assert moderator_client.get(f"/api/v1/reports/{report_id}").status_code == 404

    def test_unknown_action(self, moderator_client):
        report_id = moderator_client.post("/api/v1/reports", json=ALICE).json()["report"]["id"]

        response = moderator_client.post(
            f"/api/v1/reports/{report_id}/moderate", json={"action": "archive"}
        )

        assert response.status_code == 422

    def test_missing_report(self, moderator_client):
        response = moderator_client.post("/api/v1/reports/NOPE/moderate", json={"action": "flag"})
        assert response.status_code == 404


class TestLeaderboardAndMap:
    """Test suite for leaderboard and map endpoints."""

    def test_leaderboard(self, client):
        client.post("/api/v1/reports", json=ALICE)
        client.post("/api/v1/reports", json={"reporter_name": "Chen", "category": "Other"})

        data = client.get("/api/v1/leaderboard").json()

        assert data["count"] == 2
        assert data["entries"][0] == {
            "rank": 1, "name": "Alice", "points": 15,
            "badge": "Beginner", "next_badge": "Guardian", "points_to_next": 5,
        }

    def test_leaderboard_limit(self, client):
        assert client.get("/api/v1/leaderboard", params={"limit": 0}).status_code == 422

    def test_reports_map(self, client):
        client.post("/api/v1/reports", json=ALICE)

        response = client.get("/api/v1/map/reports")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/html")
        assert "leaflet" in response.text.lower()


class TestModeratorToken:
    """Test suite for moderator token checks."""

    def test_token_matches(self):
        digest = hash_token("s3cret")

        assert token_matches("s3cret", digest)
        assert token_matches("s3cret", digest.upper())
        assert not token_matches("wrong", digest)
        assert not token_matches(None, digest)
        assert not token_matches("s3cret", None)

    def test_is_moderator_uses_configured_digest(self):
        settings = MagicMock(moderator_token_sha256=hash_token("s3cret"))

        with patch("src.api.security.get_settings", return_value=settings):
            assert is_moderator("s3cret") is True
            assert is_moderator("nope") is False
            assert is_moderator(None) is False

    def test_moderation_disabled_without_digest(self):
        settings = MagicMock(moderator_token_sha256=None)

        with patch("src.api.security.get_settings", return_value=settings):
            assert is_moderator("anything") is False

    def test_header_reaches_dependency(self, controller):
        app.dependency_overrides[get_controller] = lambda: controller
        settings = MagicMock(moderator_token_sha256=hash_token("s3cret"))

        try:
            with patch("src.api.security.get_settings", return_value=settings):
                client = TestClient(app)
                report_id = client.post("/api/v1/reports", json=ALICE).json()["report"]["id"]
                response = client.post(
                    f"/api/v1/reports/{report_id}/moderate",
                    json={"action": "flag"},
                    headers={"X-Moderator-Token": "s3cret"},
                )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 200
        assert response.json()["status"] == "Flagged"


class TestControllerLifecycle:
    """Test suite for the shared controller dependency."""

    def test_controller_built_once_under_concurrency(self):
        start = threading.Barrier(4)
        built = []

        def slow_build(backend, repeat_promotion_rewards=False):
            time.sleep(0.05)
            controller = MagicMock()
            built.append(controller)
            return controller

        def cold_request(_):
            start.wait()
            return get_controller()

        with patch.object(api_main, "_controller", None), \
                patch.object(api_main, "build_controller", side_effect=slow_build), \
                patch("src.database.init_db"), \
                patch("src.database.SnapshotRepository"):
            with ThreadPoolExecutor(max_workers=4) as pool:
                returned = list(pool.map(cold_request, range(4)))

        assert len(built) == 1
        assert all(c is built[0] for c in returned)
