"""Tests for health and security header middleware."""
import pytest
from fastapi.testclient import TestClient

from app.main import app


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


class TestHealthEndpoint:
    """Tests for /health endpoint."""

    def test_health_returns_200(self, client):
        """Health endpoint returns HTTP 200."""
        response = client.get("/health")
        assert response.status_code == 200

    def test_health_contains_required_keys(self, client):
        """Health response contains observability keys."""
        data = client.get("/health").json()

        assert data["status"] == "healthy"
        assert data["service"] == "session-auth"
        assert "version" in data
        assert "environment" in data
        assert "session_backend" in data
        assert "started_at" in data


class TestSecurityHeaders:
    """Tests for security headers middleware."""

    def test_security_headers_present(self, client):
        """Response contains required security headers."""
        response = client.get("/health")

        assert response.headers.get("X-Content-Type-Options") == "nosniff"
        assert response.headers.get("X-Frame-Options") == "DENY"
        assert response.headers.get("Referrer-Policy") == "strict-origin-when-cross-origin"
        assert response.headers.get("Cache-Control") == "no-store"

    def test_security_headers_on_redirects(self, client):
        """Auth redirects carry the headers too."""
        response = client.get("/dashboard", follow_redirects=False)

        assert response.status_code == 303
        assert response.headers.get("Cache-Control") == "no-store"
