# Overview: Flask API routes for auth operations; registration requests, login and user approval.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import auth_service
from ..services.permission_service import SUPER_ADMIN
from ..decorators import require_auth, require_role
from ..storage import get_storage
from . import error_response, internal_error


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.post("/register")
def register_route():
    """
    Request access. Creates a pending user; a super admin must approve it
    before the user can log in.
    """
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.register_user(get_storage(), data)
        return jsonify({
            "message": "Access request sent. Wait for administrator approval.",
            "user_id": user.id,
        }), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to register user")


@auth_bp.post("/login")
def login_route():
    """
    Authenticate {email, password, role} and return a bearer token.

    Token must be included in Authorization header for protected routes.
    """
    try:
        data = request.get_json(silent=True) or {}
        token, principal = auth_service.login(
            get_storage(),
            email=str(data.get("email") or ""),
            password=str(data.get("password") or ""),
            role=str(data.get("role") or ""),
        )
        return jsonify({"token": token, "user": principal.to_dict()}), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to login user")


@auth_bp.get("/me")
@require_auth
def me_route():
    return jsonify({"user": g.principal.to_dict()}), 200


@auth_bp.get("/users")
@require_auth
@require_role(SUPER_ADMIN)
def list_users_route():
    """List registrations, optionally filtered by ?status=pending|approved|rejected|restricted."""
    try:
        users = auth_service.list_users(get_storage(), status=request.args.get("status"))
        return jsonify([user.to_dict() for user in users]), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list users")


@auth_bp.post("/users/<user_id>/approve")
@require_auth
@require_role(SUPER_ADMIN)
def approve_user_route(user_id: str):
    """
    Approve a registration and issue a credential.

    Body: {password, role: "admin"|"operator", businessId?, username?}
    """
    try:
        data = request.get_json(silent=True) or {}
        result = auth_service.approve_user(get_storage(), user_id, data)
        return jsonify(result), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to approve user")


@auth_bp.post("/users/<user_id>/reject")
@require_auth
@require_role(SUPER_ADMIN)
def reject_user_route(user_id: str):
    try:
        data = request.get_json(silent=True) or {}
        user = auth_service.reject_user(get_storage(), user_id, data.get("reason"))
        return jsonify({"user": user.to_dict()}), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to reject user")
