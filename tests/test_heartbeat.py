# ==============================================================================
# Tests for the Heartbeat Endpoint — heartbeat.py
# ==============================================================================
"""
Tests for the /health liveness endpoint using FastAPI's TestClient.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from chad.heartbeat import SERVICE_NAME, create_app


@pytest.fixture()
def client():
    return TestClient(create_app(version="9.9.9"))


class TestHealth:
    """Tests for GET /health."""

    def test_ok(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["ok"] is True
        assert body["name"] == SERVICE_NAME == "chad"
        assert body["version"] == "9.9.9"

    def test_timestamp_is_utc_iso(self, client):
        ts = client.get("/health").json()["ts"]
        assert ts.endswith("Z")
        parsed = datetime.fromisoformat(ts.replace("Z", "+00:00"))
        assert parsed.utcoffset().total_seconds() == 0

    def test_default_version(self):
        body = TestClient(create_app()).get("/health").json()
        assert body["version"]


class TestNotFound:
    """Anything other than GET /health answers 404."""

    @pytest.mark.parametrize("path", ["/", "/healthz", "/health/extra", "/docs", "/openapi.json"])
    def test_unknown_paths(self, client, path):
        response = client.get(path)
        assert response.status_code == 404
        assert response.text == "Not Found"

    @pytest.mark.parametrize("method", ["post", "put", "delete"])
    def test_wrong_method(self, client, method):
        response = getattr(client, method)("/health")
        assert response.status_code == 404
        assert response.text == "Not Found"
