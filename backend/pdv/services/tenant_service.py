"""
Tenant scoping helpers.

Every tenant-owned read or write is filtered by a business_id resolved here:
- super_admin picks the business with the X-Business-ID header
- everyone else is pinned to the business in their token; sending a
  different X-Business-ID is a cross-tenant attempt and is refused
"""

from flask import current_app

from ..errors import ForbiddenError, ValidationError
from .permission_service import Principal

BUSINESS_HEADER = "X-Business-ID"


def resolve_business_id(principal: Principal, header_value: str | None) -> str:
    header_value = (header_value or "").strip() or None

    if principal.is_super_admin:
        if not header_value:
            raise ValidationError(f"{BUSINESS_HEADER} header required")
        return header_value

    if not principal.business_id:
        raise ForbiddenError("Account is not linked to a business")

    if header_value and header_value != principal.business_id:
        current_app.logger.warning(
            "Cross-tenant access denied: user=%s business=%s requested=%s",
            principal.user_id, principal.business_id, header_value,
        )
        raise ForbiddenError("Access to this business is not allowed")

    return principal.business_id


def require_business_access(principal: Principal, business_id: str) -> None:
    """For routes addressing a business by id in the URL."""
    if principal.is_super_admin:
        return
    if principal.business_id != business_id:
        raise ForbiddenError("Access to this business is not allowed")
