"""
Test suite for Zendesk integration diagnostics.

Coverage:
- Step selection depending on configured identifiers
- Overall status aggregation
- Upstream failures reported as failed steps, never aborting the run

Test types: Integration
"""

import pytest
from fastapi.testclient import TestClient

from prime_hub.api.dependencies import get_current_caller
from test_utils import MockCallerContext, TestUsers, create_mock_get_current_caller

URL = "/functions/zendesk-diagnostics"
ORG = TestUsers.ORGANIZATION_ID


def _steps(data):
    return {d["step"]: d for d in data["diagnostics"]}


def _script_healthy_zendesk(zendesk_api):
    zendesk_api.add("GET", "/api/v2/users/me.json", {"user": {"name": "Bot", "email": "bot@proesc.com"}})
    zendesk_api.add(
        "GET",
        f"/api/v2/organizations/{ORG}.json",
        {"organization": {"id": 987, "name": "Escola Modelo", "external_id": None}},
    )
    zendesk_api.add(
        "GET", f"/api/v2/organizations/{ORG}/tickets.json", {"tickets": [{"id": 1}, {"id": 2}]}
    )
    zendesk_api.add("GET", "/api/v2/search.json", {"results": [{"id": 1}]})


@pytest.mark.integration
@pytest.mark.tickets
class TestZendeskDiagnostics:
    def test_all_checks_pass_for_configured_school(self, gestor_client, zendesk_api):
        _script_healthy_zendesk(zendesk_api)

        response = gestor_client.post(URL)

        assert response.status_code == 200
        data = response.json()
        assert data["overall_status"] == "success"
        assert "timestamp" in data
        assert [d["step"] for d in data["diagnostics"]] == [
            "credentials_check",
            "profile_check",
            "organization_check",
            "api_connectivity",
            "organization_test",
            "tickets_test",
        ]
        steps = _steps(data)
        assert steps["api_connectivity"]["details"]["auth_method"] == "API Token"
        assert steps["organization_test"]["details"]["organization_name"] == "Escola Modelo"
        assert steps["tickets_test"]["details"]["ticket_count"] == 2
        assert zendesk_api.last_request.url.params["per_page"] == "5"

    def test_credentials_check_reports_booleans_only(self, gestor_client, zendesk_api):
        _script_healthy_zendesk(zendesk_api)

        response = gestor_client.post(URL)

        details = _steps(response.json())["credentials_check"]["details"]
        assert details == {
            "has_oauth_token": False,
            "has_api_token": True,
            "has_subdomain": True,
            "has_email": True,
        }
        assert "zd-test-token" not in response.text

    def test_external_id_replaces_tickets_test(self, app, zendesk_api):
        _script_healthy_zendesk(zendesk_api)
        caller = MockCallerContext.create_gestor(external_id="escola-modelo")
        app.dependency_overrides[get_current_caller] = create_mock_get_current_caller(caller)

        with TestClient(app) as client:
            data = client.post(URL).json()

        steps = _steps(data)
        assert "external_id_test" in steps
        assert "tickets_test" not in steps
        assert steps["external_id_test"]["details"]["ticket_count"] == 1
        search = [r for r in zendesk_api.requests if r.url.path == "/api/v2/search.json"][0]
        assert search.url.params["query"] == "type:ticket organization_external_id:escola-modelo"

    def test_missing_identifiers_is_a_warning(self, no_organization_client, zendesk_api):
        zendesk_api.add("GET", "/api/v2/users/me.json", {"user": {"name": "Bot"}})

        data = no_organization_client.post(URL).json()

        assert data["overall_status"] == "warning"
        steps = _steps(data)
        assert steps["organization_check"]["status"] == "warning"
        assert "organization_test" not in steps
        assert zendesk_api.call_count == 1

    def test_missing_credentials_skips_api_checks(self, gestor_client, test_settings, zendesk_api):
        test_settings.zendesk.api_token = ""

        data = gestor_client.post(URL).json()

        assert data["overall_status"] == "error"
        assert _steps(data)["credentials_check"]["status"] == "error"
        assert "api_connectivity" not in _steps(data)
        assert zendesk_api.call_count == 0

    def test_upstream_failures_do_not_abort(self, gestor_client, zendesk_api):
        zendesk_api.add("GET", "/api/v2/users/me.json", {"error": "Couldn't authenticate you"}, status_code=401)
        zendesk_api.add("GET", f"/api/v2/organizations/{ORG}.json", {"error": "RecordNotFound"}, status_code=404)
        zendesk_api.add("GET", f"/api/v2/organizations/{ORG}/tickets.json", {"tickets": []})

        response = gestor_client.post(URL)

        assert response.status_code == 200
        data = response.json()
        assert data["overall_status"] == "error"
        steps = _steps(data)
        assert steps["api_connectivity"]["status"] == "error"
        assert steps["api_connectivity"]["details"]["status"] == 401
        assert steps["organization_test"]["status"] == "error"
        assert steps["organization_test"]["details"]["organization_id"] == ORG
        assert steps["tickets_test"]["status"] == "success"

    def test_requires_authentication(self, client, zendesk_api):
        response = client.post(URL)

        assert response.status_code == 401
        assert zendesk_api.call_count == 0
