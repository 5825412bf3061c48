"""Health check blueprint."""

from typing import Any

from flask import Blueprint, Response, current_app, jsonify
from sqlalchemy import text

from app.database.base import get_db

health_bp = Blueprint("health", __name__)


@health_bp.route("/healthz")
def health_check() -> Response:
    """Liveness check.

    Returns:
        JSON response with status information
    """
    return jsonify({"status": "ok"})


@health_bp.route("/readyz")
def readiness_check() -> Any:
    """Readiness check: the database answers a trivial query."""
    try:
        db = next(get_db())
        db.execute(text("SELECT 1"))
        return jsonify({"status": "ok", "database": "ok"})
    except Exception as e:
        current_app.logger.error(f"Database readiness check failed: {str(e)}")
        return jsonify({"status": "unavailable", "database": "error"}), 503
