"""Shared fixtures for the wbprop test suite."""

from __future__ import annotations

import pytest
from helpers import FakeClock, FakeEndpoint, RecordingSleep, make_instance

from wbprop.cache import QueryCache
from wbprop.client import SparqlClient
from wbprop.config.instances import InstanceConfig
from wbprop.sparql_helper import RetryingTransport, SparqlClientOptions
from wbprop.storage import MemoryStorage


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def cache(storage, clock):
    return QueryCache(storage, ttl_ms=60_000, max_entries=5, clock=clock)


@pytest.fixture
def endpoint():
    return FakeEndpoint()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def options():
    return SparqlClientOptions(timeout=5.0, retries=2, retry_delay=1.0)


@pytest.fixture
def make_client(cache, endpoint, sleeper, options):
    """Build a :class:`SparqlClient` wired to the fake endpoint."""

    def _make(config: InstanceConfig | None = None, **kwargs) -> SparqlClient:
        config = config or make_instance()
        transport = RetryingTransport(
            config, options, send=kwargs.pop("send", endpoint), sleep=sleeper,
        )
        kwargs.setdefault("cache", cache)
        return SparqlClient(config, options, transport=transport, **kwargs)

    return _make
