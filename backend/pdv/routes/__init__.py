# Overview: Shared helpers for API blueprints.

from flask import current_app, jsonify

from ..errors import PDVError


def error_response(e: PDVError):
    return jsonify(e.to_dict()), e.status_code


def internal_error(message: str):
    current_app.logger.exception(message)
    return jsonify({"error": "Internal server error"}), 500


def query_flag(value: str | None) -> bool:
    return (value or "").strip().lower() in {"1", "true", "yes", "on"}
