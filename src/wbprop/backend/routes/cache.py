"""Query cache routes — /api/cache/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from wbprop.backend.services.sparql_service import SparqlService

cache_bp = Blueprint("cache", __name__)


def _get_svc() -> SparqlService:
    return current_app.config["SPARQL_SERVICE"]


@cache_bp.route("/stats", methods=["GET"])
def cache_stats():
    """Return cache size and limits."""
    return jsonify(_get_svc().stats().model_dump())


@cache_bp.route("/", methods=["DELETE"])
def clear_cache():
    """Drop every cached result."""
    _get_svc().clear()
    return jsonify({"message": "Cache cleared"})


@cache_bp.route("/<instance_id>", methods=["DELETE"])
def invalidate_instance(instance_id: str):
    """Drop cached results for one instance."""
    _get_svc().invalidate(instance_id)
    return jsonify({"message": f"Invalidated cache for {instance_id}"})
