# Overview: Flask API routes for stock movements; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import stock_service
from ..services.permission_service import ADMIN
from ..decorators import require_auth, require_role, require_tenant
from ..storage import get_storage
from . import error_response, internal_error


stock_bp = Blueprint("stock", __name__, url_prefix="/api/stock")


@stock_bp.get("/movements")
@require_auth
@require_tenant
def list_movements_route():
    """Movement ledger, newest first. Optional ?productId= filter."""
    try:
        movements = stock_service.list_movements(
            get_storage(), g.business_id, product_id=request.args.get("productId"),
        )
        return jsonify([m.to_dict() for m in movements]), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list stock movements")


@stock_bp.post("/movements")
@require_auth
@require_tenant
@require_role(ADMIN)
def create_movement_route():
    """
    Record a stock entry or withdrawal and apply it to the product.

    Requires: admin role
    Body: {productId, type: "in"|"out", quantity, reason?}
    """
    try:
        data = request.get_json(silent=True) or {}
        movement, product = stock_service.record_movement(
            get_storage(), g.business_id, g.principal.user_id, data,
        )
        body = movement.to_dict()
        body["product_stock"] = product.stock
        return jsonify(body), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create stock movement")
