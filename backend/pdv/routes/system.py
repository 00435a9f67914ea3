# Overview: Health and version endpoints; report the active storage backend and database state.

"""
System health and version endpoints.

/health answers 200 while the API can serve requests, even when the
database is down and requests are falling back to the in-memory store; the
response says which backend is active so monitoring can alert on it.
"""

import sys
import time

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text

from ..extensions import db
from ..storage import get_storage
from ..time_utils import utcnow, to_utc_z

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Run SELECT 1 against the configured database. Returns status and latency."""
    storage = get_storage()
    if not getattr(storage.persistent, "enabled", True):
        return {"status": "disabled"}

    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except Exception:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


def health():
    database_health = check_database_health()
    storage = get_storage()
    backend = storage.persistent if database_health["status"] == "healthy" else storage.memory

    return jsonify({
        "status": "ok" if backend is storage.persistent else "degraded",
        "timestamp": to_utc_z(utcnow()),
        "version": current_app.config["API_VERSION"],
        "storage": backend.name,
        "checks": {"database": database_health},
    }), 200


system_bp.add_url_rule("/health", "health", health, methods=["GET"])
system_bp.add_url_rule("/api/health", "api_health", health, methods=["GET"])


@system_bp.get("/version")
def version():
    """
    Version endpoint for deployment debugging.

    Does NOT expose secret keys, database credentials or internal paths.
    """
    env = "production" if not current_app.debug else "development"

    return jsonify({
        "api_version": current_app.config["API_VERSION"],
        "environment": env,
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }), 200
