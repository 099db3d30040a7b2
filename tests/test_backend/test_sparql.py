"""Tests for the SPARQL query route."""

from __future__ import annotations

import pytest
from helpers import SELECT_RESULTS

from wbprop.errors import (
    AuthenticationRequiredError,
    InvalidQueryError,
    NetworkError,
)

QUERY = "SELECT ?property ?count WHERE { ?property wikibase:statements ?count }"


def _post(client, **body):
    return client.post("/api/sparql/query", json=body)


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.get_json() == {"status": "ok"}


def test_query_missing_fields(client):
    assert _post(client).status_code == 400
    assert _post(client, query=QUERY).status_code == 400
    assert _post(client, instance="wikidata").status_code == 400


def test_query_success(client, endpoint):
    resp = _post(client, instance="wikidata", query=QUERY)
    assert resp.status_code == 200
    data = resp.get_json()
    assert data["instance"] == "wikidata"
    assert data["variables"] == ["property", "count"]
    assert data["row_count"] == 1
    assert data["rows"][0]["count"]["value"] == "42"
    assert data["cached"] is False
    assert len(endpoint.calls) == 1


def test_second_query_is_served_from_cache(client, endpoint):
    _post(client, instance="wikidata", query=QUERY)
    data = _post(client, instance="wikidata", query=QUERY).get_json()
    assert data["cached"] is True
    assert len(endpoint.calls) == 1


def test_fresh_query_skips_cache(client, endpoint):
    _post(client, instance="wikidata", query=QUERY)
    data = _post(client, instance="wikidata", query=QUERY, fresh=True).get_json()
    assert data["cached"] is False
    assert len(endpoint.calls) == 2


def test_unknown_instance(client):
    resp = _post(client, instance="nowhere", query=QUERY)
    assert resp.status_code == 404
    assert resp.get_json() == {
        "error": "unknown_instance",
        "message": "Unknown instance: nowhere",
    }


def test_unavailable_instance(client, endpoint):
    resp = _post(client, instance="private", query=QUERY)
    assert resp.status_code == 503
    data = resp.get_json()
    assert data["error"] == "endpoint_unavailable"
    assert data["message"] == "Private is not publicly queryable."
    assert endpoint.calls == []


@pytest.mark.parametrize(
    "error, status, kind",
    [
        (InvalidQueryError("Invalid query: bad"), 400, "invalid_query"),
        (NetworkError("Network error: refused"), 504, "network_error"),
    ],
)
def test_endpoint_errors_map_to_status(client, endpoint, error, status, kind):
    # Retryable errors are answered on every attempt
    endpoint.responses.extend([error] * 3)
    resp = _post(client, instance="wikidata", query=QUERY)
    assert resp.status_code == status
    assert resp.get_json()["error"] == kind


def test_auth_error_carries_login_url(client, endpoint):
    endpoint.responses.append(AuthenticationRequiredError(
        "Authentication required for Wikimedia Commons.",
        auth_url="https://commons-query.wikimedia.org/",
    ))
    resp = _post(client, instance="commons", query=QUERY)
    assert resp.status_code == 401
    assert resp.get_json()["auth_url"] == "https://commons-query.wikimedia.org/"


def test_error_results_are_not_cached(client, endpoint):
    endpoint.responses.append(InvalidQueryError("Invalid query: bad"))
    _post(client, instance="wikidata", query=QUERY)
    data = _post(client, instance="wikidata", query=QUERY).get_json()
    assert data["cached"] is False
    assert data["row_count"] == len(SELECT_RESULTS["results"]["bindings"])
