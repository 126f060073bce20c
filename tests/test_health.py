"""
Test suite for health endpoints, CORS and request correlation.

Test types: Integration
"""

import pytest


@pytest.mark.integration
class TestHealthEndpoints:
    def test_root(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert response.json() == {"message": "Welcome to Prime Hub Gateway"}

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["version"] == "1.0.0-test"
        assert data["environment"] == "testing"

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}

    def test_readiness_reports_components(self, client):
        response = client.get("/health/ready")

        assert response.status_code == 200
        components = response.json()["components"]
        assert set(components) == {"database", "zendesk", "metabase"}
        assert components["metabase"]["secret_configured"] is True
        assert components["zendesk"]["credentials_configured"] is True

    def test_readiness_degraded_without_secret(self, client, test_settings):
        test_settings.metabase.embed_secret = ""

        data = client.get("/health/ready").json()

        assert data["status"] == "degraded"
        assert data["components"]["metabase"]["status"] == "unhealthy"


@pytest.mark.integration
class TestCors:
    @pytest.mark.parametrize(
        "path",
        [
            "/functions/metabase-embed-token",
            "/functions/zendesk-integration",
            "/functions/zendesk-diagnostics",
            "/functions/prime-metabase-insights",
        ],
    )
    def test_preflight_is_answered(self, client, path):
        response = client.options(
            path,
            headers={
                "Origin": "https://prime.proesc.com",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type, apikey",
            },
        )

        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"
        allowed = response.headers["access-control-allow-headers"].lower()
        for header in ("authorization", "x-client-info", "apikey", "content-type"):
            assert header in allowed

    def test_simple_request_has_cors_header(self, client):
        response = client.get("/health", headers={"Origin": "https://prime.proesc.com"})

        assert response.headers["access-control-allow-origin"] == "*"


@pytest.mark.integration
class TestRequestId:
    def test_request_id_is_generated(self, client):
        response = client.get("/health")

        assert response.headers["X-Request-ID"]

    def test_incoming_request_id_is_kept(self, client):
        response = client.get("/health", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"
