# Overview: Flask API routes for businesses (tenants); parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import business_service
from ..services.permission_service import SUPER_ADMIN
from ..decorators import require_auth, require_role
from ..storage import get_storage
from . import error_response, internal_error


business_bp = Blueprint("business", __name__, url_prefix="/api/business")


@business_bp.get("")
@require_auth
def list_businesses_route():
    """All businesses for super_admin; the caller's own business otherwise."""
    try:
        businesses = business_service.list_businesses(get_storage(), g.principal)
        return jsonify([b.to_dict() for b in businesses]), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list businesses")


@business_bp.post("")
@require_auth
@require_role(SUPER_ADMIN)
def create_business_route():
    """
    Create a business (tenant).

    Requires: super_admin
    Body: {name, subtitle?, logoUrl?, useCustomLogo?, plan?, address?, phone?, email?, cnpj?}
    """
    try:
        data = request.get_json(silent=True) or {}
        business = business_service.create_business(get_storage(), data)
        return jsonify(business.to_dict()), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create business")


@business_bp.put("/<business_id>")
@require_auth
def update_business_route(business_id: str):
    """Update branding/contact fields. Requires admin of this business or super_admin."""
    try:
        data = request.get_json(silent=True) or {}
        business = business_service.update_business(get_storage(), g.principal, business_id, data)
        return jsonify(business.to_dict()), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update business")
