"""Shared fixtures for gateway unit tests."""

import pytest

from fakes import FakeClock, FakeInfisical, token_config
from gateway import InfisicalGateway


@pytest.fixture
def fake():
    return FakeInfisical()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleeps():
    """Records backoff delays instead of sleeping."""
    return []


@pytest.fixture
def make_gateway(fake, clock, sleeps):
    gateways = []

    def factory(config=None):
        gateway = InfisicalGateway(
            config or token_config(),
            transport=fake.transport,
            clock=clock,
            sleep=sleeps.append,
        )
        gateways.append(gateway)
        return gateway

    yield factory

    for gateway in gateways:
        gateway.close()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's INFISICAL_* variables out of the tests."""
    for name in (
        "INFISICAL_BASE_URL",
        "INFISICAL_TOKEN",
        "INFISICAL_CLIENT_ID",
        "INFISICAL_CLIENT_SECRET",
        "INFISICAL_WORKSPACE_ID",
        "INFISICAL_ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)
