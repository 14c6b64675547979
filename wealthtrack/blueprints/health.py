"""Health check blueprint."""

from flask import Blueprint, Response, current_app, jsonify

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Report liveness and which analytics engines are loaded.

    Returns:
        JSON response with status and engine names
    """
    engines = current_app.extensions.get("wealthtrack", {})
    return jsonify({"status": "ok", "engines": sorted(engines)})
