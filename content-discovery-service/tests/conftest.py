"""Pytest configuration and fixtures for content discovery tests."""

import pytest

from content_discovery_service.application.services import DiscoveryService

from fakes import FakeContentStore, GatedBackend, sample_tables


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "http: Tests that drive the FastAPI app over ASGI")


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> FakeContentStore:
    return FakeContentStore(sample_tables())


@pytest.fixture
def service(store) -> DiscoveryService:
    return DiscoveryService(store)


@pytest.fixture
def gated(service) -> GatedBackend:
    return GatedBackend(service)
