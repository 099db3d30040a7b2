"""Flask application factory for the wbprop backend API."""

from __future__ import annotations

import atexit
import logging
from concurrent.futures import TimeoutError as FutureTimeoutError

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from wbprop.backend.config import Config
from wbprop.backend.services.loop_runner import LoopRunner
from wbprop.backend.services.sparql_service import SparqlService
from wbprop.errors import SparqlClientError
from wbprop.service import QueryService

logger = logging.getLogger(__name__)

# HTTP status returned for each error kind
ERROR_STATUS = {
    "invalid_query": 400,
    "authentication_required": 401,
    "unknown_instance": 404,
    "rate_limited": 429,
    "server_error": 502,
    "unknown_status": 502,
    "endpoint_unavailable": 503,
    "network_error": 504,
}


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers."""

    @app.errorhandler(SparqlClientError)
    def sparql_error(exc: SparqlClientError):
        status = ERROR_STATUS.get(exc.kind, 500)
        return jsonify(exc.to_dict()), status

    @app.errorhandler(FutureTimeoutError)
    def query_timeout(exc):
        return jsonify({
            "error": "timeout",
            "message": "Query did not finish in time",
        }), 504

    @app.errorhandler(400)
    def bad_request(exc):
        return jsonify({"error": str(exc.description)}), 400

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"error": "Resource not found"}), 404

    @app.errorhandler(Exception)
    def unhandled(exc):
        if isinstance(exc, HTTPException):
            return jsonify({"error": exc.description}), exc.code
        app.logger.exception("Unhandled exception")
        return jsonify({"error": "Internal server error"}), 500


def create_app(
    config_class: type[Config] = Config,
    service: QueryService | None = None,
) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).
    service:
        Pre-built query service; built from *config_class* when omitted.

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/api/*": {
            "origins": config_class.CORS_ORIGINS,
            "methods": ["GET", "POST", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type"],
        },
    })

    # ── Query service ─────────────────────────────────────────────────
    if service is None:
        service = QueryService.from_config(config_class)
    runner = LoopRunner()
    app.config["QUERY_SERVICE"] = service
    app.config["LOOP_RUNNER"] = runner
    app.config["SPARQL_SERVICE"] = SparqlService(
        service, runner, timeout=config_class.REQUEST_TIMEOUT,
    )

    def _shutdown() -> None:
        runner.close()
        service.close()

    atexit.register(_shutdown)

    # ── Blueprints ────────────────────────────────────────────────────
    from wbprop.backend.routes.cache import cache_bp
    from wbprop.backend.routes.instances import instances_bp
    from wbprop.backend.routes.sparql import sparql_bp

    app.register_blueprint(sparql_bp, url_prefix="/api/sparql")
    app.register_blueprint(cache_bp, url_prefix="/api/cache")
    app.register_blueprint(instances_bp, url_prefix="/api/instances")

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    logger.info("wbprop API ready with %d instances", len(service.catalog))
    return app
