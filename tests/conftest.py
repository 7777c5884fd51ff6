"""Pytest configuration and shared fixtures."""

import pytest
import structlog

from catalog_notifications.auth import StaticCredentialProvider
from catalog_notifications.config import Settings, reset_settings_cache
from catalog_notifications.services import NotificationApiClient
from tests.factories import make_token

API_BASE_URL = "http://catalog.test"


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Isolate tests from ambient configuration and log context."""
    for name in ("CATALOG_NOTIFICATIONS_ACCESS_TOKEN", "CATALOG_NOTIFICATIONS_API_BASE_URL"):
        monkeypatch.delenv(name, raising=False)
    reset_settings_cache()
    structlog.contextvars.clear_contextvars()
    yield
    reset_settings_cache()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def settings():
    """Provide settings with short delays for fast reconnect tests."""
    return Settings(
        _env_file=None,
        api_base_url=API_BASE_URL,
        reconnect_delay=0.01,
        max_reconnect_delay=0.05,
        manual_reconnect_delay=0,
        connect_timeout=1,
        heartbeat_outgoing_ms=0,
        heartbeat_incoming_ms=0,
    )


@pytest.fixture
def token():
    """Provide a bearer token valid for one hour."""
    return make_token()


@pytest.fixture
def credentials(token):
    """Provide a credential provider holding a valid token."""
    return StaticCredentialProvider(token)


@pytest.fixture
def api_client(credentials, settings):
    """Provide a notification API client against the test base URL."""
    client = NotificationApiClient(credentials, settings)
    yield client
    client.close()
