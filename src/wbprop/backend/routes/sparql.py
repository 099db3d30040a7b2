"""SPARQL proxy routes — /api/sparql/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify, request

from wbprop.backend.services.sparql_service import SparqlService

sparql_bp = Blueprint("sparql", __name__)


def _get_svc() -> SparqlService:
    return current_app.config["SPARQL_SERVICE"]


@sparql_bp.route("/query", methods=["POST"])
def proxy_query():
    """Run a SPARQL query against a configured instance.

    Results come from the shared cache when available; ``"fresh": true``
    forces a new request (the result is still cached).
    """
    data = request.get_json(force=True)
    query = data.get("query", "")
    instance = data.get("instance", "")
    fresh = bool(data.get("fresh", False))

    if not query or not instance:
        return jsonify({"error": "Missing 'query' or 'instance'"}), 400

    result = _get_svc().execute(instance=instance, query=query, fresh=fresh)
    return jsonify(result.model_dump())
