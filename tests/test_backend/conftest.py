"""Fixtures for backend tests."""

from __future__ import annotations

import pytest
from helpers import FakeEndpoint, fake_client_factory, make_instance

from wbprop.backend.app import create_app
from wbprop.backend.config import TestConfig
from wbprop.cache import QueryCache
from wbprop.config.instances import COMMONS, InstanceCatalog
from wbprop.service import QueryService
from wbprop.storage import MemoryStorage


@pytest.fixture()
def endpoint():
    return FakeEndpoint()


@pytest.fixture()
def query_service(endpoint):
    catalog = InstanceCatalog([
        make_instance("wikidata", concurrent=5),
        make_instance("factgrid", concurrent=3),
        make_instance(
            "private",
            requires_authentication=True,
            availability_note="Private is not publicly queryable.",
        ),
        COMMONS,
    ])
    return QueryService(
        catalog,
        QueryCache(MemoryStorage(), max_entries=10),
        client_factory=fake_client_factory(endpoint),
    )


@pytest.fixture()
def app(query_service):
    """Create a test Flask application."""
    application = create_app(TestConfig, service=query_service)
    yield application
    application.config["LOOP_RUNNER"].close()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()
