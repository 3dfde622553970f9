"""Tests for health check, unknown routes and the API rate limit."""

from __future__ import annotations

from limits import parse


class TestHealthEndpoint:
    def test_health_returns_200(self, client):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["message"] == "Server is running"
        assert "timestamp" in body


class TestUnknownRoute:
    def test_unknown_route_envelope(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "message": "Route not found"}


class TestCors:
    def test_preflight_allows_client_origin(self, client):
        from core.config import settings

        resp = client.options(
            "/api/projects",
            headers={
                "Origin": settings.client_url,
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "Authorization",
            },
        )
        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == settings.client_url


class TestRateLimit:
    def test_limit_exceeded_returns_429(self, client, monkeypatch):
        monkeypatch.setattr("core.rate_limit.api_limit", parse("2 per minute"))

        assert client.get("/api/health").status_code == 200
        assert client.get("/api/health").status_code == 200
        resp = client.get("/api/health")
        assert resp.status_code == 429
        assert resp.json() == {
            "success": False,
            "message": "Too many requests from this IP, please try again later.",
        }

    def test_paths_outside_api_are_not_limited(self, client, monkeypatch):
        monkeypatch.setattr("core.rate_limit.api_limit", parse("1 per minute"))

        for _ in range(3):
            assert client.get("/uploads/projects/missing.png").status_code == 404
