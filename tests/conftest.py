"""Shared fixtures: command-line options and the fake provider."""

import pytest

from fakes import API_URL, FakeProvider
from tunnelnode.config import Settings
from tunnelnode.orchestrator import TunnelOrchestrator
from tunnelnode.utils import EventLog

def pytest_addoption(parser):
    parser.addoption(
        "--token",
        default=None,
        help="Provider API token for integration tests (default: skip them)",
    )

@pytest.fixture(scope="session")
def live_token(request):
    token = request.config.getoption("--token")
    if not token:
        pytest.skip("integration tests need --token")
    return token

@pytest.fixture
def provider():
    return FakeProvider()

@pytest.fixture
def sleeps():
    return []

@pytest.fixture
def settings():
    return Settings(api_url=API_URL, poll_interval=7.0, poll_attempts=20)

@pytest.fixture
def orchestrator(provider, settings, sleeps):
    return TunnelOrchestrator(
        settings,
        transport=provider.transport(),
        sleep=sleeps.append,
        events=EventLog(),
    )
