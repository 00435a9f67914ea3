# Overview: Flask API routes for NFCe fiscal receipts; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import nfce_service
from ..decorators import require_auth, require_tenant
from ..storage import get_storage
from . import error_response, internal_error


nfce_bp = Blueprint("nfce", __name__, url_prefix="/api/nfce")


@nfce_bp.get("")
@require_auth
@require_tenant
def list_nfce_route():
    try:
        receipts = nfce_service.list_nfce(get_storage(), g.business_id)
        return jsonify([n.to_dict() for n in receipts]), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to list NFCe")


@nfce_bp.post("")
@require_auth
@require_tenant
def create_nfce_route():
    """
    Register a fiscal receipt for a sale.

    Body: {saleId, series?, number?, accessKey?, xml?, status?}
    number defaults to the next in the series; total is copied from the sale.
    """
    try:
        data = request.get_json(silent=True) or {}
        nfce = nfce_service.create_nfce(get_storage(), g.business_id, data)
        return jsonify(nfce.to_dict()), 201

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to create NFCe")


@nfce_bp.post("/<nfce_id>/status")
@require_auth
@require_tenant
def update_nfce_status_route(nfce_id: str):
    """
    Record the tax authority's answer.

    Body: {status, protocol?, accessKey?, rejectionReason?, xml?}
    """
    try:
        data = request.get_json(silent=True) or {}
        nfce = nfce_service.update_status(get_storage(), g.business_id, nfce_id, data)
        return jsonify(nfce.to_dict()), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to update NFCe status")
