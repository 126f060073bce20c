"""
Pytest configuration and fixtures for Prime Hub testing.

This module provides:
- Application and test client fixtures with proper lifecycle management
- Authenticated test clients for every caller configuration
- Test settings built without environment or .env files
- Scripted Zendesk / Metabase upstreams that record every request

Test types: Unit, Integration
"""

import os
import pytest
from typing import Generator
from fastapi.testclient import TestClient

from prime_hub.api.app import create_application
from prime_hub.api.dependencies import (
    get_current_caller,
    get_metabase_client,
    get_settings_dep,
    get_tenant_directory,
    get_zendesk_client,
)
from prime_hub.config import (
    AppSettings,
    CORSSettings,
    DatabaseSettings,
    InsightsSettings,
    MetabaseSettings,
    SupabaseSettings,
    ZendeskSettings,
)
from prime_hub.services.metabase import MetabaseClient
from prime_hub.services.zendesk import ZendeskClient
from test_utils import (
    FakeTenantDirectory,
    MockCallerContext,
    MockUpstream,
    TestUsers,
    create_mock_get_current_caller,
)


#                           ENVIRONMENT SETUP
# ----------------------------------------------------------------------------


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """
    Set up test environment variables before any tests run.

    Keeps the insights provider offline for anything that reads the real
    settings, then restores the original environment.
    """
    original_env = {
        "APP_ENV": os.environ.get("APP_ENV"),
        "INSIGHTS_PROVIDER": os.environ.get("INSIGHTS_PROVIDER"),
    }

    os.environ["APP_ENV"] = "testing"
    os.environ["INSIGHTS_PROVIDER"] = "fake"

    yield

    for key, value in original_env.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


#                         SETTINGS FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def test_settings() -> AppSettings:
    """
    Provide test configuration settings.

    Returns:
        AppSettings: Fully configured, with no retry back-off
    """
    return AppSettings.model_construct(
        app_name="Prime Hub Test",
        app_version="1.0.0-test",
        environment="testing",
        debug=True,
        log_level=None,
        supabase=SupabaseSettings.model_construct(
            url="https://test.supabase.co",
            jwt_secret=TestUsers.JWT_SECRET,
            jwt_audience="authenticated",
        ),
        database=DatabaseSettings.model_construct(
            host="localhost",
            port=5432,
            database="test_db",
            user="test_user",
            password="test_password",
            min_pool_size=1,
            max_pool_size=2,
        ),
        metabase=MetabaseSettings.model_construct(
            site_url="https://graficos.proesc.com",
            embed_secret=TestUsers.EMBED_SECRET,
            embed_expiry_seconds=600,
            api_key="mb-test-api-key",
            session="",
            timeout_seconds=5.0,
        ),
        zendesk=ZendeskSettings.model_construct(
            subdomain="proesc",
            email="suporte@proesc.com",
            api_token="zd-test-token",
            oauth_token="",
            timeout_seconds=5.0,
            retry_attempts=3,
            retry_wait_seconds=0.0,
        ),
        insights=InsightsSettings.model_construct(
            provider="fake",
            model_name="",
            api_key="",
            temperature=0.3,
            max_output_tokens=1024,
        ),
        cors=CORSSettings.model_construct(),
    )


#                         UPSTREAM FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture
def zendesk_api() -> MockUpstream:
    """Scripted Zendesk API; paths include the ``/api/v2`` prefix."""
    return MockUpstream()


@pytest.fixture
def zendesk_client(test_settings, zendesk_api) -> ZendeskClient:
    return ZendeskClient(test_settings.zendesk, transport=zendesk_api.transport)


@pytest.fixture
def metabase_api() -> MockUpstream:
    return MockUpstream()


@pytest.fixture
def metabase_client(test_settings, metabase_api) -> MetabaseClient:
    return MetabaseClient(test_settings.metabase, transport=metabase_api.transport)


@pytest.fixture
def tenant_directory() -> FakeTenantDirectory:
    """Directory holding one gestor with a fully configured school."""
    directory = FakeTenantDirectory()
    directory.add_profile(
        TestUsers.GESTOR_USER_ID,
        TestUsers.GESTOR_EMAIL,
        role="gestor",
        school_id=TestUsers.SCHOOL_ID,
    )
    directory.add_school(
        TestUsers.SCHOOL_ID,
        proesc_id=TestUsers.PROESC_ID,
        zendesk_integration_url=TestUsers.ORGANIZATION_ID,
        zendesk_external_id=None,
    )
    return directory


#                         APPLICATION FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def app(test_settings, tenant_directory, zendesk_client, metabase_client):
    """
    Create a fresh FastAPI application instance for each test.

    Settings, the tenant directory and both upstream clients are replaced
    so no test touches a real database or network.
    """
    application = create_application()
    application.dependency_overrides[get_settings_dep] = lambda: test_settings
    application.dependency_overrides[get_tenant_directory] = lambda: tenant_directory
    application.dependency_overrides[get_zendesk_client] = lambda: zendesk_client
    application.dependency_overrides[get_metabase_client] = lambda: metabase_client
    yield application
    application.dependency_overrides.clear()


@pytest.fixture(scope="function")
def client(app) -> Generator[TestClient, None, None]:
    """
    Create a TestClient without a mocked caller.

    Requests go through real bearer-token verification against
    ``tenant_directory``.
    """
    with TestClient(app) as test_client:
        yield test_client


def create_custom_client(app, caller) -> TestClient:
    """
    Create a TestClient authenticated as the given caller context.

    Example:
        client = create_custom_client(app, MockCallerContext.create_admin())
    """
    app.dependency_overrides[get_current_caller] = create_mock_get_current_caller(caller)
    return TestClient(app)


#                      AUTHENTICATED CLIENT FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture(scope="function")
def gestor_client(app) -> Generator[TestClient, None, None]:
    """Authenticated as a gestor whose school has proesc id 4442 and org 987."""
    with create_custom_client(app, MockCallerContext.create_gestor()) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def admin_client(app) -> Generator[TestClient, None, None]:
    """Authenticated as an admin without a school (global scope)."""
    with create_custom_client(app, MockCallerContext.create_admin()) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def no_school_client(app) -> Generator[TestClient, None, None]:
    """Authenticated as a regular user not linked to any school."""
    caller = MockCallerContext.create_user_without_school()
    with create_custom_client(app, caller) as test_client:
        yield test_client


@pytest.fixture(scope="function")
def no_organization_client(app) -> Generator[TestClient, None, None]:
    """Authenticated as a user whose school has no Zendesk organization."""
    caller = MockCallerContext.create_user_without_organization()
    with create_custom_client(app, caller) as test_client:
        yield test_client


#                         MOCK CALLER FIXTURES
# ----------------------------------------------------------------------------


@pytest.fixture
def mock_gestor():
    return MockCallerContext.create_gestor()


@pytest.fixture
def mock_admin():
    return MockCallerContext.create_admin()


@pytest.fixture
def mock_user_without_school():
    return MockCallerContext.create_user_without_school()


@pytest.fixture
def mock_user_without_organization():
    return MockCallerContext.create_user_without_organization()


#                        TEST MARKERS DOCUMENTATION
# ----------------------------------------------------------------------------

# Markers are registered in pyproject.toml:
#
# @pytest.mark.unit: Fast, isolated unit tests (no external dependencies)
# @pytest.mark.integration: Tests through the FastAPI app
# @pytest.mark.auth: Authentication and caller resolution tests
# @pytest.mark.embed: Metabase embed token tests
# @pytest.mark.tickets: Zendesk gateway and diagnostics tests
# @pytest.mark.insights: Dashboard insights tests
#
# Usage:
#   pytest -m unit
#   pytest -m "tickets and not integration"
