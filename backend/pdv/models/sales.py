from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import from_cents
from ._base import new_id


class Sale(db.Model):
    """
    Completed sale. Written together with its SaleItems in one transaction and
    never mutated afterwards.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_business_created", "business_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False, index=True)
    user_id = db.Column(db.String(36), nullable=True, index=True)

    subtotal_cents = db.Column(db.Integer, nullable=False)
    discount_cents = db.Column(db.Integer, nullable=False, default=0)
    total_cents = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False, index=True)
    customer_name = db.Column(db.String(255), nullable=False, default="")
    status = db.Column(db.String(16), nullable=False, default="completed")

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    def __repr__(self) -> str:
        return f"<Sale id={self.id} total_cents={self.total_cents} business_id={self.business_id}>"

    def to_dict(self, items: Iterable["SaleItem"] | None = None) -> dict:
        data = {
            "id": self.id,
            "business_id": self.business_id,
            "user_id": self.user_id,
            "subtotal": from_cents(self.subtotal_cents),
            "discount": from_cents(self.discount_cents),
            "total": from_cents(self.total_cents),
            "total_cents": self.total_cents,
            "payment_method": self.payment_method,
            "customer_name": self.customer_name,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
        }
        if items is not None:
            item_dicts = [item.to_dict() for item in items]
            data["items"] = item_dicts
            data["items_count"] = len(item_dicts)
        return data


class SaleItem(db.Model):
    """Line item on a sale; name and unit price are snapshots taken at sale time."""
    __tablename__ = "sale_items"

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    sale_id = db.Column(db.String(36), db.ForeignKey("sales.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "quantity": self.quantity,
            "unit_price": from_cents(self.unit_price_cents),
            "unit_price_cents": self.unit_price_cents,
            "total": from_cents(self.total_cents),
            "total_cents": self.total_cents,
        }
