"""Instance routes — /api/instances/*."""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify

instances_bp = Blueprint("instances", __name__)


def _summary(instance) -> dict:
    return {
        "id": instance.id,
        "name": instance.name,
        "sparql_endpoint": instance.sparql_endpoint,
        "requires_authentication": instance.requires_authentication,
        "cookie_based_auth": instance.cookie_based_auth,
        "auth_url": instance.auth_url,
        "availability_note": instance.availability_note,
    }


@instances_bp.route("/", methods=["GET"])
def list_instances():
    """Return all configured SPARQL instances."""
    catalog = current_app.config["QUERY_SERVICE"].catalog
    return jsonify([_summary(instance) for instance in catalog])


@instances_bp.route("/<instance_id>", methods=["GET"])
def get_instance(instance_id: str):
    """Return the full configuration of one instance."""
    catalog = current_app.config["QUERY_SERVICE"].catalog
    return jsonify(catalog.get(instance_id).model_dump())
