# Overview: Request decorators for API routes: authentication, tenant context and role checks.

from functools import wraps
from flask import request, jsonify, g

from .errors import PDVError
from .services import auth_service, permission_service
from .services.tenant_service import BUSINESS_HEADER, resolve_business_id


def _is_authenticated() -> bool:
    return getattr(g, "principal", None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.principal (permission_service.Principal). Returns 401 when the
    Authorization header is missing, malformed, expired or forged.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1]
        try:
            g.principal = auth_service.decode_token(token)
        except PDVError as e:
            return jsonify({"error": e.message}), e.status_code

        return f(*args, **kwargs)

    return decorated_function


def require_tenant(f):
    """
    Establish the business the request operates on.

    Must run after @require_auth. Sets g.business_id from the X-Business-ID
    header (super_admin) or the token claim (everyone else).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not _is_authenticated():
            return jsonify({"error": "Authentication required"}), 401
        try:
            g.business_id = resolve_business_id(g.principal, request.headers.get(BUSINESS_HEADER))
        except PDVError as e:
            return jsonify({"error": e.message}), e.status_code

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """Require one of `roles` (super_admin always passes). Must run after @require_auth."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401
            try:
                permission_service.require_role(g.principal, *roles)
            except PDVError as e:
                return jsonify({
                    "error": e.message,
                    "required_roles": list(roles),
                }), e.status_code

            return f(*args, **kwargs)

        return decorated_function
    return decorator
