"""
Test Configuration and Fixtures

Shared fixtures and fakes for the unichat test suite.
"""

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment variables before importing the app.
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("WPP_API_BASE_URL", "http://gateway.test/")
os.environ.setdefault("WPP_API_KEY", "test-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "text")


# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "api: API endpoint tests")


def pytest_collection_modifyitems(config, items):
    """
    Auto-assign tier markers:
    - tests/api/** => api
    - everything else => unit
    """
    for item in items:
        path = str(getattr(item, "fspath", ""))
        if item.get_closest_marker("api") or item.get_closest_marker("unit"):
            continue
        if "/tests/api/" in path:
            item.add_marker(pytest.mark.api)
        else:
            item.add_marker(pytest.mark.unit)


# =============================================================================
# GATEWAY FIXTURES
# =============================================================================


USER_ID = "user1"


@pytest.fixture
def fake_gateway():
    """Gateway fake with two instances owned by ``user1`` and one foreign instance."""
    from tests.support.gateway import FakeGateway

    return FakeGateway(
        instances=[
            {"name": f"{USER_ID}_sales", "connectionStatus": "open"},
            {"instanceName": f"{USER_ID}_support", "connectionStatus": "open"},
            {"name": "user2_sales", "connectionStatus": "open"},
        ]
    )


# =============================================================================
# APP FIXTURES
# =============================================================================


@pytest.fixture
def app(fake_gateway):
    """Application with the gateway dependency pointed at the fake."""
    from unichat.api.deps import get_gateway_client
    from unichat.api.main import create_app

    application = create_app()
    application.dependency_overrides[get_gateway_client] = lambda: fake_gateway
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async test client authenticated as ``user1``."""
    transport = ASGITransport(app=app)
    async with AsyncClient(
        transport=transport,
        base_url="http://test",
        headers={"X-User-Id": USER_ID},
    ) as ac:
        yield ac
