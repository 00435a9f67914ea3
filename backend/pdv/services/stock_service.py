# Overview: Service-layer operations for stock movements; every movement updates the product's stock.

from __future__ import annotations

from ..models import Product, StockMovement
from ..models._base import new_id
from ..storage import StorageRouter
from ..time_utils import utcnow
from ..validation import normalize_movement_type, pick, require_fields, to_int


def list_movements(storage: StorageRouter, business_id: str, product_id: str | None = None) -> list[StockMovement]:
    return storage.run(lambda backend: backend.list_stock_movements(business_id, product_id=product_id))


def build_movement(
    business_id: str,
    product_id: str,
    movement_type: str,
    quantity: int,
    reason: str,
    user_id: str | None,
    product_name: str | None = None,
) -> StockMovement:
    return StockMovement(
        id=new_id(),
        business_id=business_id,
        product_id=product_id,
        type=movement_type,
        quantity=quantity,
        reason=reason,
        product_name=product_name,
        user_id=user_id,
        created_at=utcnow(),
    )


def record_movement(
    storage: StorageRouter,
    business_id: str,
    user_id: str | None,
    data: dict,
) -> tuple[StockMovement, Product]:
    """
    Append a movement and apply it to the product's stock.

    `type` is "in"/"out" (or "entrada"/"saida"); quantity is a positive
    integer. An "out" movement larger than the current stock is rejected.
    """
    require_fields(
        data,
        productId=("productId", "product_id"),
        type=("type",),
        quantity=("quantity",),
    )
    product_id = pick(data, "productId", "product_id")
    movement_type = normalize_movement_type(data["type"])
    quantity = to_int(data["quantity"], "quantity", minimum=1)
    reason = str(pick(data, "reason", default="")).strip()

    def _op(backend):
        movement = build_movement(business_id, product_id, movement_type, quantity, reason, user_id)
        product = backend.apply_stock_movement(movement)
        return movement, product

    return storage.run(_op)
