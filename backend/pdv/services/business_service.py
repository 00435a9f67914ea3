# Overview: Service-layer operations for businesses (tenants); creation and branding updates.

from __future__ import annotations

from ..errors import NotFoundError, ValidationError
from ..models import Business
from ..models._base import new_id
from ..models.tenancy import PLANS
from ..storage import StorageRouter
from ..time_utils import utcnow
from ..validation import pick, require_fields
from .permission_service import ADMIN, Principal, require_role
from .tenant_service import require_business_access

# Request key -> column
BUSINESS_MUTABLE_FIELDS = {
    "name": "name",
    "subtitle": "subtitle",
    "logoUrl": "logo_url",
    "logo_url": "logo_url",
    "useCustomLogo": "use_custom_logo",
    "use_custom_logo": "use_custom_logo",
    "plan": "plan",
    "address": "address",
    "phone": "phone",
    "email": "email",
    "cnpj": "cnpj",
}


def _clean_patch(data: dict) -> dict:
    patch = {}
    for key, column in BUSINESS_MUTABLE_FIELDS.items():
        if key in data:
            patch[column] = data[key]

    if "name" in patch and not str(patch["name"] or "").strip():
        raise ValidationError("name cannot be empty")
    if "plan" in patch and patch["plan"] not in PLANS:
        raise ValidationError(f"plan must be one of: {', '.join(PLANS)}")
    if "use_custom_logo" in patch:
        patch["use_custom_logo"] = bool(patch["use_custom_logo"])
    if "cnpj" in patch and patch["cnpj"]:
        digits = "".join(ch for ch in str(patch["cnpj"]) if ch.isdigit())
        if len(digits) != 14:
            raise ValidationError("cnpj must have 14 digits")
    return patch


def list_businesses(storage: StorageRouter, principal: Principal) -> list[Business]:
    """All businesses for super_admin; only the caller's own otherwise."""
    if principal.is_super_admin:
        return storage.run(lambda backend: backend.list_businesses())
    if not principal.business_id:
        return []
    return storage.run(lambda backend: backend.list_businesses(principal.business_id))


def create_business(storage: StorageRouter, data: dict) -> Business:
    require_fields(data, name=("name",))
    patch = _clean_patch(data)

    def _op(backend):
        business = Business(
            id=new_id(),
            name=str(patch["name"]).strip(),
            subtitle=patch.get("subtitle") or "",
            logo_url=patch.get("logo_url") or "",
            use_custom_logo=patch.get("use_custom_logo", False),
            plan=patch.get("plan", "free"),
            address=patch.get("address") or "",
            phone=patch.get("phone") or "",
            email=patch.get("email") or "",
            cnpj=patch.get("cnpj") or "",
            owner_id=pick(data, "ownerId", "owner_id"),
            created_at=utcnow(),
        )
        return backend.add_business(business)

    return storage.run(_op)


def update_business(storage: StorageRouter, principal: Principal, business_id: str, data: dict) -> Business:
    """Branding/contact update by the business's admin or a super_admin. Plan changes need super_admin."""
    require_role(principal, ADMIN)
    require_business_access(principal, business_id)

    patch = _clean_patch(data)
    if "plan" in patch and not principal.is_super_admin:
        raise ValidationError("Only platform administrators can change the plan")
    if not patch:
        raise ValidationError("No updatable fields provided")

    business = storage.run(lambda backend: backend.update_business(business_id, patch))
    if business is None:
        raise NotFoundError("Business not found")
    return business
