# Overview: Service-layer operations for NFCe fiscal receipts; numbering and authorization status.

"""
NFCe (consumer fiscal receipt) records.

The receipt itself is issued by the external tax authority; this service
keeps the local record: sequential number per (business, series), the sale
it belongs to, the access key and the authorization status reported back.

Status flow: pending -> authorized | rejected; authorized -> cancelled;
rejected -> pending (resubmission). cancelled is terminal.
"""

from __future__ import annotations

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import NFCe
from ..models._base import new_id
from ..models.fiscal import NFCE_STATUS_ALIASES, NFCE_STATUSES
from ..storage import StorageRouter
from ..time_utils import utcnow
from ..validation import pick, require_fields, to_int

ALLOWED_TRANSITIONS = {
    "pending": {"authorized", "rejected", "cancelled"},
    "authorized": {"cancelled"},
    "rejected": {"pending"},
    "cancelled": set(),
}


def normalize_status(value: str | None, default: str | None = None) -> str:
    if not value:
        if default is None:
            raise ValidationError("status required")
        return default
    status = str(value).strip().lower()
    status = NFCE_STATUS_ALIASES.get(status, status)
    if status not in NFCE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(NFCE_STATUSES)}")
    return status


def _access_key(value) -> str | None:
    if not value:
        return None
    key = "".join(ch for ch in str(value) if ch.isdigit())
    if len(key) != 44:
        raise ValidationError("accessKey must have 44 digits")
    return key


def list_nfce(storage: StorageRouter, business_id: str) -> list[NFCe]:
    return storage.run(lambda backend: backend.list_nfce(business_id))


def create_nfce(storage: StorageRouter, business_id: str, data: dict) -> NFCe:
    require_fields(data, saleId=("saleId", "sale_id"))
    sale_id = pick(data, "saleId", "sale_id")
    series = to_int(pick(data, "series", "serie", default=1), "series", minimum=1)
    number = pick(data, "number", "numero")
    number = to_int(number, "number", minimum=1) if number not in (None, "") else None
    status = normalize_status(pick(data, "status"), default="pending")
    access_key = _access_key(pick(data, "accessKey", "access_key", "key"))

    def _op(backend):
        sale = backend.get_sale(business_id, sale_id)
        if sale is None:
            raise NotFoundError("Sale not found")

        for existing in backend.list_nfce(business_id):
            if existing.sale_id == sale_id and existing.status != "cancelled":
                raise ConflictError("Sale already has an active NFCe", details={"nfce_id": existing.id})

        now = utcnow()
        nfce = NFCe(
            id=new_id(),
            business_id=business_id,
            sale_id=sale_id,
            number=number or backend.next_nfce_number(business_id, series),
            series=series,
            access_key=access_key,
            status=status,
            authorization_protocol=pick(data, "protocol", "authorizationProtocol"),
            rejection_reason=None,
            xml=pick(data, "xml", default=""),
            total_cents=sale.total_cents,
            created_at=now,
            authorized_at=now if status == "authorized" else None,
        )
        return backend.add_nfce(nfce)

    return storage.run(_op)


def update_status(storage: StorageRouter, business_id: str, nfce_id: str, data: dict) -> NFCe:
    """Record the tax authority's answer (or a cancellation) for a receipt."""
    status = normalize_status(pick(data, "status"))

    def _op(backend):
        nfce = backend.get_nfce(business_id, nfce_id)
        if nfce is None:
            raise NotFoundError("NFCe not found")
        if status != nfce.status and status not in ALLOWED_TRANSITIONS[nfce.status]:
            raise ConflictError(f"Cannot change NFCe status from {nfce.status} to {status}")

        fields = {"status": status}
        if status == "authorized":
            fields["authorized_at"] = nfce.authorized_at or utcnow()
            fields["authorization_protocol"] = pick(data, "protocol", "authorizationProtocol")
            access_key = _access_key(pick(data, "accessKey", "access_key"))
            if access_key:
                fields["access_key"] = access_key
        elif status == "rejected":
            fields["rejection_reason"] = pick(data, "rejectionReason", "rejection_reason", default="")
        xml = pick(data, "xml")
        if xml:
            fields["xml"] = xml
        return backend.update_nfce(business_id, nfce_id, fields)

    return storage.run(_op)
