from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ._base import new_id

PLANS = ("free", "premium")


class Business(db.Model):
    """
    Multi-tenant root: every retail establishment is a Business.

    All products, sales, stock movements, credentials and fiscal receipts carry
    a business_id. Only the super_admin role sees across businesses.
    """
    __tablename__ = "businesses"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    name = db.Column(db.String(255), nullable=False)

    # Branding
    subtitle = db.Column(db.String(255), nullable=True)
    logo_url = db.Column(db.Text, nullable=True)
    use_custom_logo = db.Column(db.Boolean, nullable=False, default=False)
    plan = db.Column(db.String(16), nullable=False, default="free")

    # Contact / fiscal identity
    address = db.Column(db.String(255), nullable=True)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    cnpj = db.Column(db.String(18), nullable=True, index=True)

    owner_id = db.Column(db.String(36), nullable=True, index=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Business id={self.id} name={self.name!r}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "subtitle": self.subtitle or "",
            "logo_url": self.logo_url or "",
            "use_custom_logo": bool(self.use_custom_logo),
            "plan": self.plan,
            "address": self.address or "",
            "phone": self.phone or "",
            "email": self.email or "",
            "cnpj": self.cnpj or "",
            "owner_id": self.owner_id,
            "created_at": to_utc_z(self.created_at),
        }
