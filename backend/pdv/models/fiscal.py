from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import from_cents
from ._base import new_id

NFCE_STATUSES = ("pending", "authorized", "rejected", "cancelled")
NFCE_STATUS_ALIASES = {
    "pendente": "pending",
    "autorizada": "authorized",
    "rejeitada": "rejected",
    "cancelada": "cancelled",
}


class NFCe(db.Model):
    """
    Consumer fiscal receipt (Nota Fiscal de Consumidor eletrônica) for a sale.

    Numbers are sequential per (business, series). The status mirrors the
    external tax authority's answer; `authorized_at` is set on authorization.
    """
    __tablename__ = "nfce"
    __table_args__ = (
        db.UniqueConstraint("business_id", "series", "number", name="uq_nfce_business_series_number"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False, index=True)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)

    number = db.Column(db.Integer, nullable=False)
    series = db.Column(db.Integer, nullable=False, default=1)
    access_key = db.Column(db.String(44), nullable=True, index=True)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)
    authorization_protocol = db.Column(db.String(50), nullable=True)
    rejection_reason = db.Column(db.Text, nullable=True)
    xml = db.Column(db.Text, nullable=True)

    total_cents = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    authorized_at = db.Column(db.DateTime, nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "sale_id": self.sale_id,
            "number": self.number,
            "series": self.series,
            "access_key": self.access_key or "",
            "status": self.status,
            "authorization_protocol": self.authorization_protocol,
            "rejection_reason": self.rejection_reason,
            "xml": self.xml or "",
            "total": from_cents(self.total_cents),
            "total_cents": self.total_cents,
            "created_at": to_utc_z(self.created_at),
            "authorized_at": to_utc_z(self.authorized_at),
        }
