"""Pytest configuration for integration tests."""

import os

import pytest

from core.config.loader import ConfigLoader

REQUIRED_ENV = ("INFISICAL_WORKSPACE_ID",)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a live Infisical instance)",
    )


def pytest_collection_modifyitems(config, items):
    """Add integration marker to all tests in this directory."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(scope="session")
def live_config():
    """Config from INFISICAL_* variables; skips when no instance is configured."""
    missing = [name for name in REQUIRED_ENV if not os.environ.get(name)]
    has_credentials = os.environ.get("INFISICAL_TOKEN") or (
        os.environ.get("INFISICAL_CLIENT_ID") and os.environ.get("INFISICAL_CLIENT_SECRET")
    )
    if missing or not has_credentials:
        pytest.skip("Live Infisical instance not configured")
    return ConfigLoader().load()
