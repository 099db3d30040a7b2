"""Tests for the command line interface."""

from __future__ import annotations

import json

import pytest
from click.testing import CliRunner
from helpers import FakeEndpoint, fake_client_factory, make_instance

from wbprop.cache import QueryCache
from wbprop.cli import main
from wbprop.config.instances import COMMONS, InstanceCatalog
from wbprop.errors import AuthenticationRequiredError, InvalidQueryError
from wbprop.service import QueryService
from wbprop.storage import MemoryStorage

QUERY = "SELECT ?property ?count WHERE { ?property wikibase:statements ?count }"


@pytest.fixture
def endpoint():
    return FakeEndpoint()


@pytest.fixture
def service(endpoint):
    catalog = InstanceCatalog([make_instance("wikidata"), COMMONS])
    return QueryService(
        catalog,
        QueryCache(MemoryStorage(), max_entries=20),
        client_factory=fake_client_factory(endpoint),
    )


@pytest.fixture
def invoke(service):
    runner = CliRunner()

    def _invoke(args, **kwargs):
        return runner.invoke(main, args, obj={"service": service}, **kwargs)

    return _invoke


def test_help():
    result = CliRunner().invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "cached SPARQL queries" in result.output


def test_instances(invoke):
    result = invoke(["instances"])
    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("wikidata")
    assert "https://wikidata.example.org/sparql" in lines[0]
    assert "[cookie auth]" in lines[1]


def test_query_from_stdin(invoke, endpoint):
    result = invoke(["query", "wikidata"], input=QUERY)
    assert result.exit_code == 0, result.output
    assert "property\tcount" in result.output
    assert "http://www.wikidata.org/entity/P31\t42" in result.output
    assert "1 rows (" in result.output
    assert endpoint.calls == [QUERY]


def test_query_from_file(invoke, tmp_path):
    path = tmp_path / "props.rq"
    path.write_text(QUERY)
    result = invoke(["query", "wikidata", str(path)])
    assert result.exit_code == 0, result.output
    assert "1 rows" in result.output


def test_second_query_reports_cache(invoke, endpoint):
    invoke(["query", "wikidata"], input=QUERY)
    result = invoke(["query", "wikidata"], input=QUERY)
    assert "1 rows (cache)" in result.output
    assert len(endpoint.calls) == 1


def test_fresh_query(invoke, endpoint):
    invoke(["query", "wikidata"], input=QUERY)
    result = invoke(["query", "wikidata", "--fresh"], input=QUERY)
    assert result.exit_code == 0
    assert "(cache)" not in result.output
    assert len(endpoint.calls) == 2


def test_raw_output(invoke):
    result = invoke(["query", "wikidata", "--raw"], input=QUERY)
    assert result.exit_code == 0
    assert json.loads(result.output)["head"]["vars"] == ["property", "count"]


def test_empty_query(invoke):
    result = invoke(["query", "wikidata"], input="   \n")
    assert result.exit_code == 2
    assert "Empty query" in result.output


def test_query_error(invoke, endpoint):
    endpoint.responses.append(InvalidQueryError("Invalid query: bad token"))
    result = invoke(["query", "wikidata"], input=QUERY)
    assert result.exit_code == 1
    assert "Error: Invalid query: bad token" in result.output


def test_unknown_instance(invoke):
    result = invoke(["query", "nowhere"], input=QUERY)
    assert result.exit_code == 1
    assert "Unknown instance: nowhere" in result.output


def test_auth_error_shows_login_url(invoke, endpoint):
    endpoint.responses.append(AuthenticationRequiredError(
        "Authentication required for Wikimedia Commons.",
        auth_url="https://commons-query.wikimedia.org/",
    ))
    result = invoke(["query", "commons"], input=QUERY)
    assert result.exit_code == 1
    assert "Log in at: https://commons-query.wikimedia.org/" in result.output


def test_cache_commands(invoke, service):
    invoke(["query", "wikidata"], input=QUERY)

    result = invoke(["cache", "stats"])
    assert "Entries: 1/20" in result.output
    assert "TTL: 300s" in result.output

    result = invoke(["cache", "invalidate", "wikidata"])
    assert "Removed 1 cached results for wikidata" in result.output
    assert service.get_stats().entries == 0

    invoke(["query", "wikidata"], input=QUERY)
    result = invoke(["cache", "clear"])
    assert result.exit_code == 0
    assert service.get_stats().entries == 0
