"""
Integration tests for the Campus Assistant FastAPI service.

The service runs with the in-memory history backend (see conftest.py).
"""

import shutil

import pytest
from fastapi.testclient import TestClient

from .. import app as app_module
from ..config import DEFAULT_KNOWLEDGE_BASE_PATH

LIBRARY_MAP = "https://maps.app.goo.gl/uNePErUh3hs4kUWP9"


@pytest.mark.integration
class TestServiceInfo:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["endpoints"]["resolve"] == "POST /api/v1/resolve"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["resolver"] == "initialized"
        assert data["history_backend"] == "memory"
        assert data["knowledge_base_version"] == "2025.06.1"

    def test_uninitialized_service(self):
        """Without the lifespan the resolver is absent."""
        app_module.resolver = None
        app_module.history = None
        raw_client = TestClient(app_module.app)

        assert raw_client.post("/api/v1/resolve", json={"text": "library"}).status_code == 503
        assert raw_client.get("/health").json()["status"] == "unhealthy"


@pytest.mark.integration
class TestResolveEndpoint:

    def test_resolve_location(self, client):
        response = client.post("/api/v1/resolve", json={"text": "library", "language": "en"})
        assert response.status_code == 200
        data = response.json()
        assert data["source"] == "location"
        assert data["confidence"] == 0.9
        assert data["language"] == "en"
        assert LIBRARY_MAP in data["content"]
        assert data["response_time"] >= 0

    def test_first_message_flag(self, client):
        first = client.post("/api/v1/resolve", json={"text": "what are the fees"}).json()
        assert first["is_first_message"] is True

        second = client.post(
            "/api/v1/resolve",
            json={"text": "how do i apply?", "session_id": first["session_id"]},
        ).json()
        assert second["session_id"] == first["session_id"]
        assert second["is_first_message"] is False

    def test_detected_language_is_reply_language(self, client):
        data = client.post("/api/v1/resolve", json={"text": "ഹോസ്റ്റൽ ഉണ്ടോ?"}).json()
        assert data["detected_language"] == "ml"
        assert data["language"] == "ml"

    def test_unknown_language_uses_default(self, client):
        data = client.post("/api/v1/resolve", json={"text": "library", "language": "fr"}).json()
        assert data["language"] == "en"

    def test_fallback(self, client):
        data = client.post("/api/v1/resolve", json={"text": "asdkjasdkj"}).json()
        assert data["source"] == "fallback"
        assert data["confidence"] == 0.0

    def test_validation_error(self, client):
        assert client.post("/api/v1/resolve", json={"text": ""}).status_code == 422
        assert client.post("/api/v1/resolve", json={}).status_code == 422


@pytest.mark.integration
class TestLanguageAndNavigation:

    def test_language(self, client):
        response = client.post("/api/v1/language", json={"text": "hostel undo?"})
        assert response.status_code == 200
        assert response.json() == {"language": "manglish"}

    def test_navigate(self, client):
        response = client.post(
            "/api/v1/navigate",
            json={"from": "Main Entrance", "to": "Administrative Block"},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["from"] == "Main Entrance"
        assert data["to"] == "Administrative Block"
        assert len(data["steps"]) == 3
        assert data["directions"].startswith("You are at the main entrance. Go straight.")

    def test_navigate_localized(self, client):
        data = client.post(
            "/api/v1/navigate",
            json={"from": "Main Entrance", "to": "Administrative Block", "language": "ml"},
        ).json()
        assert data["language"] == "ml"
        assert data["steps"][0].startswith("നിങ്ങൾ")

    def test_navigate_no_route(self, client):
        response = client.post("/api/v1/navigate", json={"from": "Library", "to": "Moon"})
        assert response.status_code == 404

    def test_locations(self, client):
        data = client.get("/api/v1/locations").json()
        assert data["total"] == sum(len(items) for items in data["categories"].values())
        library = [loc for loc in data["categories"]["facility"] if loc["id"] == "central-library"]
        assert library[0]["maps_url"] == LIBRARY_MAP

    def test_routes(self, client):
        data = client.get("/api/v1/routes").json()
        assert data["total"] == 12
        assert {"from": "Main Entrance", "to": "Administrative Block"} in data["routes"]


@pytest.mark.integration
class TestHistoryEndpoints:

    def test_history_round_trip(self, client):
        session = "history-test"
        client.post("/api/v1/resolve", json={"text": "library", "session_id": session})

        data = client.get(f"/api/v1/history/{session}").json()
        assert data["count"] == 2
        assert [m["role"] for m in data["messages"]] == ["user", "assistant"]
        assert data["messages"][0]["content"] == "library"

        assert client.delete(f"/api/v1/history/{session}").json()["cleared"] is True
        assert client.get(f"/api/v1/history/{session}").json()["count"] == 0

    def test_history_is_capped(self, monkeypatch):
        monkeypatch.setenv("CAMPUS_ASSISTANT_HISTORY_MAX", "4")
        with TestClient(app_module.app) as capped_client:
            for text in ["library", "canteen", "what are the fees"]:
                capped_client.post("/api/v1/resolve", json={"text": text, "session_id": "capped"})
            data = capped_client.get("/api/v1/history/capped").json()

        assert data["count"] == 4
        assert data["messages"][0]["content"] == "canteen"


@pytest.mark.integration
class TestMetricsAndReload:

    def test_metrics(self, client):
        client.post("/api/v1/resolve", json={"text": "library"})
        client.post("/api/v1/resolve", json={"text": "asdkjasdkj"})

        data = client.get("/metrics").json()
        assert data["total_requests"] == 2
        assert data["source_counts"]["location"] == 1
        assert data["source_counts"]["fallback"] == 1
        assert data["answered_percentage"] == 50.0
        assert data["average_confidence"] == pytest.approx(0.45)

    def test_reload(self, client):
        response = client.post("/admin/reload")
        assert response.status_code == 200
        assert response.json()["version"] == "2025.06.1"

    def test_failed_reload_keeps_previous_tables(self, tmp_path, monkeypatch):
        data_dir = tmp_path / "data"
        shutil.copytree(DEFAULT_KNOWLEDGE_BASE_PATH, data_dir)
        monkeypatch.setenv("CAMPUS_ASSISTANT_KB_PATH", str(data_dir))

        with TestClient(app_module.app) as kb_client:
            (data_dir / "faqs.json").unlink()

            assert kb_client.post("/admin/reload").status_code == 500
            assert kb_client.get("/health").json()["knowledge_base_version"] == "2025.06.1"
            answer = kb_client.post("/api/v1/resolve", json={"text": "Is ragging allowed?"}).json()
            assert answer["source"] == "faq"
