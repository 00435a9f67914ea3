# Overview: Flask API routes for reports; parses input and returns JSON responses.

from flask import Blueprint, request, jsonify, g

from ..errors import PDVError
from ..services import reporting_service
from ..services.permission_service import ADMIN
from ..decorators import require_auth, require_role, require_tenant
from ..storage import get_storage
from . import error_response, internal_error


reports_bp = Blueprint("reports", __name__, url_prefix="/api/reports")


@reports_bp.get("/sales")
@require_auth
@require_tenant
@require_role(ADMIN)
def sales_report_route():
    """
    Sales summary over a date range.

    Requires: admin role
    Query: startDate, endDate (ISO-8601; date-only endDate includes the whole day)
    """
    try:
        report = reporting_service.sales_report(
            get_storage(),
            g.business_id,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
        return jsonify(report), 200

    except PDVError as e:
        return error_response(e)
    except Exception:
        return internal_error("Failed to build sales report")
