# Overview: Principal type and the single role-capability check used by every route.

"""
Roles:
- super_admin: platform operator; sees every business, creates businesses,
  approves registrations. Not stored in the database (configured credentials).
- admin: manages one business (products, stock, reports, branding).
- operator: runs the register for one business (sales, fiscal receipts).

super_admin satisfies every role requirement.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..errors import ForbiddenError

SUPER_ADMIN = "super_admin"
ADMIN = "admin"
OPERATOR = "operator"

ROLES = (SUPER_ADMIN, ADMIN, OPERATOR)


@dataclass(frozen=True)
class Principal:
    """Authenticated caller, rebuilt from the bearer token on every request."""
    user_id: str
    email: str
    role: str
    business_id: str | None = None
    name: str | None = None

    @property
    def is_super_admin(self) -> bool:
        return self.role == SUPER_ADMIN

    def to_dict(self) -> dict:
        return {
            "id": self.user_id,
            "email": self.email,
            "role": self.role,
            "business_id": self.business_id,
            "name": self.name,
        }


def has_role(principal: Principal | None, *roles: str) -> bool:
    if principal is None:
        return False
    if principal.is_super_admin:
        return True
    return principal.role in roles


def require_role(principal: Principal | None, *roles: str) -> None:
    """
    Raise ForbiddenError unless the principal holds one of `roles`.

    Usage:
        require_role(g.principal, ADMIN)
    """
    if not has_role(principal, *roles):
        raise ForbiddenError(
            "Permission denied",
            details={"required_roles": list(roles)},
        )
