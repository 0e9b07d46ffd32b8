"""
Shared pytest fixtures for the load-harness test suite.

Every fixture builds fresh, isolated collaborators: a private metrics
registry instead of the process-wide one, a scripted fake transport
instead of Locust, a seeded random source, and a sleep function that
records pauses instead of blocking.

Key Concepts Demonstrated:
- Dependency injection of randomness and time for deterministic flows
- Test data factories (Faker-generated feed pages)
- Isolation from the shared registry used under Locust
"""

from __future__ import annotations

# Locust patches the standard library with gevent on import; it has to run
# before requests (and ssl) are loaded by the harness modules below.
import locust  # noqa: F401

import random
from typing import Any

import pytest
from faker import Faker

from sports_load.config import Settings
from sports_load.metrics import MetricsRegistry
from sports_load.transport import EndpointClient
from tests.fakes import FakeTransport

fake = Faker()


# -----------------------------------------------------------------------------
# Core collaborators
# -----------------------------------------------------------------------------

@pytest.fixture
def settings() -> Settings:
    """Settings with a fixed tag and base URL so requests are predictable."""
    return Settings(base_url="http://api.test/api/v1", test_tag="pytest-run")


@pytest.fixture
def registry() -> MetricsRegistry:
    """A private registry so tests never touch the process-wide one."""
    return MetricsRegistry()


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def api(transport, settings, registry) -> EndpointClient:
    """Endpoint client wired to the fake transport and private registry."""
    return EndpointClient(transport, settings, registry=registry)


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def sleeps() -> list[float]:
    """Collects every pause requested by a flow."""
    return []


@pytest.fixture
def record_sleep(sleeps):
    """Sleep replacement that records the duration instead of blocking."""
    return sleeps.append


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def lump_factory():
    """
    Factory for feed items ("lumps").

    Example:
        def test_something(lump_factory):
            lump = lump_factory(id=7, updated_at="2024-01-03T00:00:00Z")
    """
    next_id = iter(range(1, 10_000))

    def _create_lump(**overrides: Any) -> dict[str, Any]:
        created = fake.date_time_between(start_date="-30d", end_date="now")
        lump = {
            "id": next(next_id),
            "title": fake.sentence(nb_words=5),
            "team_id": random.choice([1, 5, 63, 93, 125]),
            "created_at": created.strftime("%Y-%m-%dT%H:%M:%S.000Z"),
        }
        lump.update(overrides)
        return lump

    return _create_lump


@pytest.fixture
def feed_page(lump_factory):
    """Factory for a feed payload with *count* generated lumps."""

    def _create_page(count: int = 5, **overrides: Any) -> dict[str, Any]:
        return {"lumps": [lump_factory(**overrides) for _ in range(count)]}

    return _create_page
