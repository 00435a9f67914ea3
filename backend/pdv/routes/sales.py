# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import sales_service
from ..decorators import require_auth, require_tenant
from ..storage import get_storage
from . import error_response, internal_error


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


def _listing_args() -> dict:
    return {
        "date_filter": request.args.get("dateFilter"),
        "payment_method": request.args.get("paymentMethod"),
        "search": request.args.get("search"),
        "start_date": request.args.get("startDate"),
        "end_date": request.args.get("endDate"),
    }


@sales_bp.get("")
@require_auth
@require_tenant
def list_sales_route():
    """
    List sales (newest first) with their items.

    Query: dateFilter=today|week|month|all, paymentMethod, search, startDate, endDate
    """
    try:
        sales = sales_service.list_sales(get_storage(), g.business_id, **_listing_args())
        return jsonify(sales), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list sales")


@sales_bp.post("")
@require_auth
@require_tenant
def create_sale_route():
    """
    Finalize a sale from the register cart.

    Body: {items: [{productId, quantity, unitPrice}], paymentMethod, discount?, customerName?}
    Available to: admin, operator
    """
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.finalize_sale(get_storage(), g.business_id, g.principal.user_id, data)
        return jsonify(sale), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create sale")


@sales_bp.get("/stats")
@require_auth
@require_tenant
def sales_stats_route():
    """Count, revenue, average ticket and top payment method over the same filters as the listing."""
    try:
        sales = sales_service.list_sales(get_storage(), g.business_id, **_listing_args())
        return jsonify(sales_service.sales_stats(sales)), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to compute sales stats")


@sales_bp.get("/<sale_id>")
@require_auth
@require_tenant
def get_sale_route(sale_id: str):
    try:
        return jsonify(sales_service.get_sale(get_storage(), g.business_id, sale_id)), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to get sale")
