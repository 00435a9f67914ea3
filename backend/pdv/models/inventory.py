from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow
from ..validation import from_cents
from ._base import new_id


class Product(db.Model):
    """
    Product master data, scoped to a business.

    Authoritative money storage is in cents. `stock` is the running balance;
    it is updated whenever a StockMovement is written and is never recomputed
    from the movement ledger.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.Index("ix_products_business_name", "business_id", "name"),
        db.Index("ix_products_business_barcode", "business_id", "barcode"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False, index=True)

    name = db.Column(db.String(255), nullable=False)
    barcode = db.Column(db.String(50), nullable=True)
    category = db.Column(db.String(100), nullable=False, default="Geral")
    brand = db.Column(db.String(100), nullable=True)
    unit = db.Column(db.String(20), nullable=False, default="UN")

    price_cents = db.Column(db.Integer, nullable=False)
    cost_cents = db.Column(db.Integer, nullable=False, default=0)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} business_id={self.business_id}>"

    @property
    def is_low_stock(self) -> bool:
        return self.stock <= self.min_stock

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "name": self.name,
            "barcode": self.barcode or "",
            "category": self.category,
            "brand": self.brand or "",
            "unit": self.unit,
            "price": from_cents(self.price_cents),
            "price_cents": self.price_cents,
            "cost": from_cents(self.cost_cents),
            "cost_cents": self.cost_cents,
            "stock": self.stock,
            "min_stock": self.min_stock,
            "low_stock": self.is_low_stock,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class StockMovement(db.Model):
    """Append-only stock ledger entry. `type` is "in" or "out"; quantity is always positive."""
    __tablename__ = "stock_movements"
    __table_args__ = (
        db.Index("ix_stock_movements_business_created", "business_id", "created_at"),
    )

    id = db.Column(db.String(36), primary_key=True, default=new_id)
    business_id = db.Column(db.String(36), db.ForeignKey("businesses.id"), nullable=False, index=True)
    product_id = db.Column(db.String(36), db.ForeignKey("products.id"), nullable=False, index=True)

    type = db.Column(db.String(8), nullable=False, index=True)
    quantity = db.Column(db.Integer, nullable=False)
    reason = db.Column(db.String(255), nullable=False, default="")

    # Snapshot so listings don't need a join in either backend
    product_name = db.Column(db.String(255), nullable=True)

    user_id = db.Column(db.String(36), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow, index=True)

    @property
    def quantity_delta(self) -> int:
        return self.quantity if self.type == "in" else -self.quantity

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "business_id": self.business_id,
            "product_id": self.product_id,
            "product_name": self.product_name,
            "type": self.type,
            "quantity": self.quantity,
            "reason": self.reason,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
        }
