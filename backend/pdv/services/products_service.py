# backend/pdv/services/products_service.py
"""
Products Service

All operations take the caller's resolved business_id; products of other
businesses are invisible (lookups return NotFoundError, not 403, so ids of
other tenants are not revealed).
"""
from __future__ import annotations

from ..errors import ConflictError, NotFoundError
from ..models import Product
from ..models._base import new_id
from ..storage import StorageRouter
from ..time_utils import utcnow
from ..validation import pick, require_fields, to_cents, to_int


def list_products(
    storage: StorageRouter,
    business_id: str,
    search: str | None = None,
    category: str | None = None,
    low_stock: bool = False,
) -> list[Product]:
    return storage.run(
        lambda backend: backend.list_products(business_id, search=search, category=category, low_stock=low_stock)
    )


def get_product(storage: StorageRouter, business_id: str, product_id: str) -> Product:
    product = storage.run(lambda backend: backend.get_product(business_id, product_id))
    if product is None:
        raise NotFoundError("Product not found")
    return product


def find_by_barcode(storage: StorageRouter, business_id: str, barcode: str) -> Product:
    product = storage.run(lambda backend: backend.find_product_by_barcode(business_id, barcode.strip()))
    if product is None:
        raise NotFoundError("Product not found", details={"barcode": barcode})
    return product


def create_product(storage: StorageRouter, business_id: str, data: dict) -> Product:
    """
    Create a product. Requires name and price; everything else defaults:
    cost 0, stock 0, min_stock 0, category "Geral", unit "UN".

    Barcodes are unique within a business.
    """
    require_fields(data, name=("name",), price=("price",))

    name = str(data["name"]).strip()
    barcode = str(pick(data, "barcode", default="")).strip() or None
    price_cents = to_cents(data["price"], "price")
    cost = pick(data, "cost")
    cost_cents = to_cents(cost, "cost") if cost not in (None, "") else 0
    stock = pick(data, "stock")
    stock = to_int(stock, "stock", minimum=0) if stock not in (None, "") else 0
    min_stock = pick(data, "minStock", "min_stock")
    min_stock = to_int(min_stock, "minStock", minimum=0) if min_stock not in (None, "") else 0

    def _op(backend):
        if barcode and backend.find_product_by_barcode(business_id, barcode):
            raise ConflictError("Barcode already in use", details={"barcode": barcode})
        now = utcnow()
        product = Product(
            id=new_id(),
            business_id=business_id,
            name=name,
            barcode=barcode,
            category=pick(data, "category", default="Geral") or "Geral",
            brand=pick(data, "brand"),
            unit=pick(data, "unit", default="UN") or "UN",
            price_cents=price_cents,
            cost_cents=cost_cents,
            stock=stock,
            min_stock=min_stock,
            created_at=now,
            updated_at=now,
        )
        return backend.add_product(product)

    return storage.run(_op)
