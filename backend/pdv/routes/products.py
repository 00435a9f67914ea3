# Overview: Flask API routes for products; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import products_service
from ..services.permission_service import ADMIN
from ..decorators import require_auth, require_role, require_tenant
from ..storage import get_storage
from . import error_response, internal_error, query_flag


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_tenant
def list_products_route():
    """
    List the business's products ordered by name.

    Query: search (name substring or exact barcode), category, lowStock=true
    """
    try:
        products = products_service.list_products(
            get_storage(),
            g.business_id,
            search=request.args.get("search"),
            category=request.args.get("category"),
            low_stock=query_flag(request.args.get("lowStock")),
        )
        return jsonify([p.to_dict() for p in products]), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list products")


@products_bp.post("")
@require_auth
@require_tenant
@require_role(ADMIN)
def create_product_route():
    """
    Create a product.

    Requires: admin role
    Body: {name, price, barcode?, cost?, stock?, minStock?, category?, unit?, brand?}
    """
    try:
        data = request.get_json(silent=True) or {}
        product = products_service.create_product(get_storage(), g.business_id, data)
        return jsonify(product.to_dict()), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create product")


@products_bp.get("/barcode/<barcode>")
@require_auth
@require_tenant
def product_by_barcode_route(barcode: str):
    """Scanner lookup."""
    try:
        product = products_service.find_by_barcode(get_storage(), g.business_id, barcode)
        return jsonify(product.to_dict()), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to look up barcode")


@products_bp.get("/<product_id>")
@require_auth
@require_tenant
def get_product_route(product_id: str):
    try:
        product = products_service.get_product(get_storage(), g.business_id, product_id)
        return jsonify(product.to_dict()), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to get product")
